import sys
import os
from PyQt6.QtWidgets import QApplication  # type: ignore[import]
from tour360.ui.main_window import TourWindow
from tour360.storage.settings_store import load_config
from tour360.utils.logging_setup import setup_logging, get_logger, shutdown_logging


def _mask_args(argv):
    out = []
    for a in argv:
        if a.startswith('-') or a.lower().startswith(('http://', 'https://')):
            out.append(a)
        else:
            out.append(os.path.basename(os.path.abspath(os.path.expanduser(a))))
    return out


def main(argv=None) -> int:
    argv = list(sys.argv if argv is None else argv)
    config = load_config()
    # 로깅 초기화: 환경변수 우선, 없으면 config.yaml
    lvl = os.getenv("TOUR360_LOG_LEVEL", config.log_level)
    setup_logging(level=lvl)
    log = get_logger("app")
    log.info("app_start | argv=%s", _mask_args(argv[1:]))

    app = QApplication(argv)
    # 명령줄 인자: 첫 번째 비옵션 인자를 파노라마 이미지(경로 또는 URL)로 사용
    args = [a for a in argv[1:] if a and not a.startswith('-')]
    image_url = args[0] if args else None
    window = TourWindow(image_url=image_url, config=config)
    if window.viewer is None:
        log.error("viewer_unavailable")
    window.show()
    try:
        rc = app.exec()
        log.info("app_exit | code=%s", rc)
        return rc
    finally:
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
