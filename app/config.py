from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from adapters.layout.tree import LayoutConfig
from domain.services.render_frame import RenderConfig

DEFAULT_CONFIG_PATH = Path("config/jsongraph.yaml")


class LayoutSettings(BaseModel):
    horizontal_unit: float = Field(default=500.0, gt=0)
    vertical_unit: float = Field(default=120.0, gt=0)
    horizontal_margin: float = 80.0
    vertical_margin: float = 80.0
    sibling_gap: float = Field(default=1.2, ge=0)

    def to_layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            horizontal_unit=self.horizontal_unit,
            vertical_unit=self.vertical_unit,
            horizontal_margin=self.horizontal_margin,
            vertical_margin=self.vertical_margin,
            sibling_gap=self.sibling_gap,
        )


class RenderSettings(BaseModel):
    node_width: float = Field(default=320.0, gt=0)
    header_height: float = Field(default=56.0, gt=0)
    row_height: float = Field(default=28.0, gt=0)
    body_padding: float = Field(default=24.0, ge=0)
    anchor_offset_y: float = Field(default=28.0, ge=0)

    def to_render_config(self) -> RenderConfig:
        return RenderConfig(
            node_width=self.node_width,
            header_height=self.header_height,
            row_height=self.row_height,
            body_padding=self.body_padding,
            anchor_offset_y=self.anchor_offset_y,
        )


class ViewportSettings(BaseModel):
    preserve_manual_positions: bool = False


class ServerSettings(BaseModel):
    title: str = "JSON Graph Viewer"
    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, lt=65536)
    max_sessions: int = Field(default=256, gt=0)
    max_document_bytes: int = Field(default=5_000_000, gt=0)

    @field_validator("title", mode="before")
    @classmethod
    def normalize_title(cls, value: object) -> str:
        title = str(value or "").strip()
        return title or "JSON Graph Viewer"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="JSONGRAPH_", env_nested_delimiter="__")

    layout: LayoutSettings = LayoutSettings()
    render: RenderSettings = RenderSettings()
    viewport: ViewportSettings = ViewportSettings()
    server: ServerSettings = ServerSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("JSONGRAPH_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
