import uvicorn

from salessync.core.config import IS_DEV, PORT


def main() -> None:
    uvicorn.run("salessync.main:app", host="0.0.0.0", port=PORT, reload=IS_DEV)


if __name__ == "__main__":
    main()
