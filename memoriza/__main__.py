import os

import uvicorn


def main():
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    reload = os.environ.get("RELOAD", "").lower() in {"1", "true", "yes"}
    log_level = os.environ.get("LOG_LEVEL", "info").lower()
    uvicorn.run("memoriza.main:app", host=host, port=port, reload=reload, log_level=log_level)


if __name__ == "__main__":
    main()
