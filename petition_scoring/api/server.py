import uvicorn

from petition_scoring.api.app import create_app
from petition_scoring.config.settings import Settings
from petition_scoring.logging.logger import Log


def main() -> None:
    """Entry point: configure logging -> build the app -> serve it."""
    settings = Settings()
    Log.configure(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
