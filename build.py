# build.py
import PyInstaller.__main__
import sys

sys.setrecursionlimit(5000)

SOURCES = [
    "app.py", "views.py", "config.py", "app_logger.py", "errors.py",
    "storage.py", "database.py", "document_store.py",
    "auth.py", "catalog.py", "inventory.py", "reports.py",
]

if __name__ == '__main__':
    PyInstaller.__main__.run([
        'run_app.py',
        '--name=Asset_Tracker',
        '--onefile',
        '--clean',
        *[f'--add-data={src}{";" if sys.platform == "win32" else ":"}.' for src in SOURCES],

        '--collect-all=streamlit',
        '--collect-all=altair',
        '--collect-all=pandas',
        '--collect-all=plotly',
        '--collect-all=pyzbar',
        '--collect-all=cv2',
        '--collect-all=bcrypt',
        '--collect-all=sqlalchemy',

        # Streamlit reads these at startup
        '--copy-metadata=streamlit',
        '--copy-metadata=tqdm',
        '--copy-metadata=requests',
        '--copy-metadata=packaging',

        '--exclude-module=pytest',
    ])
