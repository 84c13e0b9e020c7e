# Config flags and runtime settings

import os

from dotenv import load_dotenv
load_dotenv()

CONFIG = {
    "debug_mode": os.getenv("PLANNER_DEBUG", "0") == "1",

    # Local timezone used for "today"/"now"; empty means the host's local time
    "timezone": os.getenv("PLANNER_TZ", ""),

    # Official holidays (Calendarific)
    "holidays": {
        "api_key": os.getenv("CALENDARIFIC_API_KEY", "your-api-key-here"),
        "base_url": os.getenv("CALENDARIFIC_BASE_URL", "https://calendarific.com/api/v2/holidays"),
        "country": os.getenv("HOLIDAY_COUNTRY", "PH"),
        "timeout": float(os.getenv("HOLIDAY_TIMEOUT", "10")),
        # When set, the CLI reads /api/holidays from this service instead of Calendarific
        "api_url": os.getenv("PLANNER_API_URL", ""),
    },

    # Key-value store for tasks + custom holidays
    "storage": {
        "backend": os.getenv("PLANNER_STORE", "file"),   # file | sql | memory | none
        "data_dir": os.getenv("PLANNER_DATA_DIR", "data"),
        "database_url": os.getenv("DATABASE_URL", "sqlite:///./planner.db"),
    },

    # Dashboard windows
    "windows": {
        "upcoming_days": 14,
        "upcoming_limit": 5,
        "due_soon_hours": 24,
        "upcoming_task_days": 7,
    },
}
