import datetime
import logging

from fastapi import FastAPI

from student_planner.services.holiday_source import HolidaySource
from student_planner.services.routes_holidays import mount_holiday_routes
from student_planner.utils.config import CONFIG

logging.basicConfig(
    level=logging.DEBUG if CONFIG["debug_mode"] else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def create_app(source: HolidaySource = None) -> FastAPI:
    app = FastAPI(title="Student Planner API")

    @app.get("/ping")
    def ping():
        return {"status": "ok", "time": datetime.datetime.now().isoformat()}

    mount_holiday_routes(app, source or HolidaySource())
    return app


app = create_app()
