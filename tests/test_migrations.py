from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text

from ota_server.config import settings

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def _alembic_config(url):
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("sqlalchemy.url", url)
    cfg.attributes["configure_logger"] = False
    return cfg


def test_upgrade_creates_tables_and_seeds_settings(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrate.db'}"
    command.upgrade(_alembic_config(url), "head")

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
        assert {"bundles", "private_hot_updater_settings"} <= tables

        columns = {c["name"] for c in inspect(engine).get_columns("bundles")}
        assert {"id", "platform", "file_hash", "storage_uri", "metadata"} <= columns

        with engine.connect() as conn:
            rows = conn.execute(text("SELECT id, version FROM private_hot_updater_settings")).all()
        assert [tuple(r) for r in rows] == [("default", settings.SCHEMA_VERSION)]
    finally:
        engine.dispose()


def test_downgrade_drops_tables(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrate.db'}"
    cfg = _alembic_config(url)
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert "bundles" not in tables
    assert "private_hot_updater_settings" not in tables
