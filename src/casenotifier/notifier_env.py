from pathlib import Path
import os
import tomllib
from pydantic import BaseModel, Field, ValidationError, field_validator
from typing import Optional
from jinja2 import Template

HOME_ENV_VAR = "CASENOTIFIER_HOME"


# ─── Config Schema ─────────────────────────────────────────────────
class ScheduleConfig(BaseModel):
    anchor_weekday: str = Field("wed", pattern="^(mon|tue|wed|thu|fri|sat|sun)$")

    @field_validator("anchor_weekday", mode="before")
    @classmethod
    def _short_lower(cls, value):
        # accept 'Wednesday', 'WED', ...
        if isinstance(value, str):
            return value.strip().lower()[:3]
        return value


class UIConfig(BaseModel):
    theme: str = Field("dark", pattern="^(dark|light)$")
    refresh_seconds: float = Field(1.0, ge=1.0)


class StoreConfig(BaseModel):
    filename: str = Field("accounts.dat", min_length=1)
    atomic_writes: bool = True


class NotifierConfig(BaseModel):
    title: str = "Cases Notifier Configuration"
    schedule: ScheduleConfig = ScheduleConfig()
    ui: UIConfig = UIConfig()
    store: StoreConfig = StoreConfig()


# ─── Commented Template ────────────────────────────────────
CONFIG_TEMPLATE = """\
title = "{{ title }}"

[schedule]
# anchor_weekday: str = 'mon' | 'tue' | 'wed' | 'thu' | 'fri' | 'sat' | 'sun'
# A drop becomes available at local midnight on this weekday, in the
# first week after the last one was collected.
anchor_weekday = "{{ schedule.anchor_weekday }}"

[ui]
# theme: str = 'dark' | 'light'
theme = "{{ ui.theme }}"

# refresh_seconds: float >= 1.0
# how often the remaining times are redrawn
refresh_seconds = {{ ui.refresh_seconds }}

[store]
# filename: str - relative names are resolved against the home directory
filename = "{{ store.filename }}"

# atomic_writes: bool = true | false
# write to a temporary file and rename it over the data file
atomic_writes = {{ store.atomic_writes | lower }}
"""

# ─── Save Config with Comments ───────────────────────────────


def render_config(config: NotifierConfig) -> str:
    template = Template(CONFIG_TEMPLATE)
    return template.render(**config.model_dump()).strip() + "\n"


def save_config_from_template(config: NotifierConfig, path: Path):
    path.write_text(render_config(config), encoding="utf-8")
    print(f"✅ Config with comments written to: {path}")


def resolve_home() -> Path:
    env_home = os.getenv(HOME_ENV_VAR)
    if env_home:
        return Path(env_home).expanduser()
    return Path.cwd()


# ─── Main Environment Class ───────────────────────────────


class NotifierEnvironment:
    def __init__(self):
        self._home = resolve_home()
        self._config: Optional[NotifierConfig] = None

    @property
    def home(self) -> Path:
        return self._home

    @property
    def config_path(self) -> Path:
        return self.home / "config.toml"

    @property
    def data_path(self) -> Path:
        path = Path(self.config.store.filename).expanduser()
        if path.is_absolute():
            return path
        return self.home / path

    def ensure(self, init_config: bool = True):
        self.home.mkdir(parents=True, exist_ok=True)

        if init_config and not self.config_path.exists():
            save_config_from_template(NotifierConfig(), self.config_path)

    def load_config(self) -> NotifierConfig:
        # Step 1: Create the file if it doesn't exist
        if not self.config_path.exists():
            config = NotifierConfig()
            self.home.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(render_config(config))
            print(f"✅ Created new config file at {self.config_path}")
            self._config = config
            return config

        # Step 2: Try to load and validate the config
        try:
            with open(self.config_path, "rb") as f:
                data = tomllib.load(f)
            config = NotifierConfig.model_validate(data)
        except (ValidationError, tomllib.TOMLDecodeError) as e:
            print(f"⚠️ Config error in {self.config_path}: {e}\nUsing defaults.")
            self._config = NotifierConfig()
            return self._config

        # Step 3: Always regenerate the canonical version
        rendered = render_config(config)

        with open(self.config_path, "r", encoding="utf-8") as f:
            current_text = f.read()

        if rendered != current_text:
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(rendered)
            print(f"✅ Updated {self.config_path} with any missing defaults.")

        self._config = config
        return config

    @property
    def config(self) -> NotifierConfig:
        if self._config is None:
            return self.load_config()
        return self._config
