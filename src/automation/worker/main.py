import os

from src.automation.infrastructure.celery.app import celery_app
from src.setup.logging_config import configure_logging


def main() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO")
    concurrency = os.getenv("CELERY_CONCURRENCY", "2")
    queues = os.getenv("CELERY_QUEUES", "celery")
    configure_logging(log_level)
    # Registers automation.run on celery_app.
    import src.automation.worker.tasks.automation  # noqa: F401

    celery_app.worker_main(
        [
            "worker",
            "-l",
            log_level,
            "--concurrency",
            concurrency,
            "-Q",
            queues,
        ]
    )


if __name__ == "__main__":
    main()
