"""Example: drive the scan use case from the service layer (no Flask).

Controllers are a thin layer; the workflow lives in the services.
"""

import importlib

from dotenv import load_dotenv

from config import get_settings_module

from src.rfid_entry.rfid_entry.container import build_container


def main():
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, redis_config=settings.REDIS_CONFIG)

    result = container.scan_service.scan("RFID-A")
    print(result.outcome.value, result.entry, result.form_url)


if __name__ == "__main__":
    main()
