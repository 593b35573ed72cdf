from __future__ import annotations
from typing import Any, Dict, Optional
from sqlalchemy import String, Boolean, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from .config import DEFAULT_SCHEMA_VERSION
from .db import Base


class Bundle(Base):
    __tablename__ = "bundles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    platform: Mapped[str] = mapped_column(String(255), nullable=False)
    should_force_update: Mapped[bool] = mapped_column(Boolean, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False)
    file_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    git_commit_hash: Mapped[Optional[str]] = mapped_column(String(255))
    message: Mapped[Optional[str]] = mapped_column(Text)
    channel: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_uri: Mapped[str] = mapped_column(Text, nullable=False)
    target_app_version: Mapped[Optional[str]] = mapped_column(String(255))
    fingerprint_hash: Mapped[Optional[str]] = mapped_column(String(255))
    # "metadata" is reserved on declarative classes
    bundle_metadata: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)


class HotUpdaterSettings(Base):
    __tablename__ = "private_hot_updater_settings"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    version: Mapped[str] = mapped_column(String(255), nullable=False, server_default=DEFAULT_SCHEMA_VERSION)
