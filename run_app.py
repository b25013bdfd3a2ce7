# run_app.py
import os
import sys

import streamlit.web.cli as stcli

import config
from app_logger import get_logger

logger = get_logger("launcher")


def bundle_dir():
    # PyInstaller unpacks data files into _MEIPASS
    if getattr(sys, "frozen", False):
        return sys._MEIPASS
    return os.path.dirname(os.path.abspath(__file__))


def streamlit_args(app_path, port):
    return [
        "streamlit",
        "run",
        app_path,
        f"--server.port={port}",
        "--server.headless=true",
        "--global.developmentMode=false",
    ]


if __name__ == "__main__":
    app_path = os.path.join(bundle_dir(), "app.py")
    logger.info("Starting %s %s on port %s", config.APP_TITLE, config.APP_VERSION, config.SERVER_PORT)
    sys.argv = streamlit_args(app_path, config.SERVER_PORT)
    sys.exit(stcli.main())
