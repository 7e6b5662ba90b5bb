import uvicorn

from ocra import config


CONFIG = config.Config()


def main() -> None:
    uvicorn.run(
        "ocra.app:app",
        host=CONFIG.host,
        port=CONFIG.port,
        reload=CONFIG.env == config.Env.local,
    )


if __name__ == "__main__":
    main()
