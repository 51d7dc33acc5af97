import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module, development when unset
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "school_records.settings.production"

    if env in {"test", "testing"}:
        return "school_records.settings.testing"

    return "school_records.settings.development"
