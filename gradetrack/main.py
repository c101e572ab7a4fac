"""
Main entry point for the GradeTrack service.
"""

import logging
import sys
from typing import Optional

from .api.rest_api import GradeTrackRestAPI
from .config import PlatformConfig, load_config
from .core.exceptions import ConfigurationError
from .persistence import CourseRepository, GradeItemRepository, SemesterRepository, SQLiteDatabase
from .services import ConcurrencyManager, CourseService, GradeService, ReportService, SemesterService


class GradeTrackPlatform:
    """Wires the database, repositories, services and REST API together."""

    def __init__(self, config: Optional[PlatformConfig] = None):
        self._config = config or PlatformConfig()
        self._initialize_platform()

    @property
    def config(self) -> PlatformConfig:
        return self._config

    @property
    def app(self):
        return self._rest_api.app

    @property
    def course_service(self) -> CourseService:
        return self._course_service

    @property
    def grade_service(self) -> GradeService:
        return self._grade_service

    @property
    def semester_service(self) -> SemesterService:
        return self._semester_service

    @property
    def report_service(self) -> ReportService:
        return self._report_service

    def _initialize_platform(self):
        """Initialize the platform with all services."""
        print("Initializing GradeTrack...")

        self._database = SQLiteDatabase(self._config.database_path)
        print(f"✓ Database initialized: {self._config.database_path}")

        self._concurrency_manager = ConcurrencyManager(default_timeout=self._config.lock_timeout)
        print("✓ Concurrency manager initialized")

        courses = CourseRepository(self._database)
        grades = GradeItemRepository(self._database)
        semesters = SemesterRepository(self._database)
        print("✓ Repositories initialized")

        shared = (self._database, courses, grades, semesters, self._concurrency_manager)
        self._course_service = CourseService(*shared)
        self._grade_service = GradeService(*shared, upcoming_days=self._config.upcoming_days)
        self._semester_service = SemesterService(*shared)
        self._report_service = ReportService(*shared, default_target=self._config.default_target)
        print("✓ Services initialized")

        self._rest_api = GradeTrackRestAPI(
            self._course_service,
            self._grade_service,
            self._semester_service,
            self._report_service,
            cors_origins=self._config.cors_origins
        )
        print("✓ API initialized")

    def start_rest_server(self):
        """Serve the REST API until interrupted."""
        import uvicorn

        print(f"✓ REST server starting on {self._config.host}:{self._config.port}")
        print(f"  - API Docs: http://localhost:{self._config.port}/docs")
        uvicorn.run(
            self._rest_api.app,
            host=self._config.host,
            port=self._config.port,
            log_level=self._config.log_level.lower()
        )


def main(argv=None):
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="GradeTrack grade and GPA tracking service")
    parser.add_argument("--host", type=str, help="REST server host")
    parser.add_argument("--port", type=int, help="REST server port")
    parser.add_argument("--database", type=str, dest="database_path", help="SQLite database file")
    parser.add_argument("--log-level", type=str, dest="log_level", help="Logging level")
    parser.add_argument("--config", type=str, help="Configuration file path")

    args = parser.parse_args(argv)

    try:
        config = load_config(
            args.config,
            host=args.host,
            port=args.port,
            database_path=args.database_path,
            log_level=args.log_level
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        for error in e.details.get('errors', []):
            print(f"  - {error['field']}: {error['message']}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    platform = GradeTrackPlatform(config)
    try:
        platform.start_rest_server()
    except KeyboardInterrupt:
        print("\nShutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
