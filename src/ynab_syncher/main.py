import uvicorn

from ynab_syncher.app import app
from ynab_syncher.core import settings
from ynab_syncher.logger import get_logging_config


def main() -> None:
    host = settings.get_env_str("HOST", "0.0.0.0")
    port = settings.get_env_int("PORT", 8000, min_value=1)
    uvicorn.run(app, host=host, port=port, log_config=get_logging_config())


if __name__ == "__main__":
    main()
