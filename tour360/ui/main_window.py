from PyQt6.QtWidgets import QMainWindow, QWidget, QVBoxLayout, QLabel  # type: ignore[import]
from PyQt6.QtCore import QSettings, Qt  # type: ignore[import]

from .tour_viewer import DEFAULT_CONTAINER, TourViewer, mount_tour_viewer
from .state import ViewState
from ..storage.settings_store import TourConfig, load_config
from ..utils.logging_setup import get_logger


class TourWindow(QMainWindow):
    def __init__(self, image_url: str | None = None, config: TourConfig | None = None):
        super().__init__()
        self.setWindowTitle("Paradise Eden Villa - 360 Virtual Tour")
        self.log = get_logger("ui.TourWindow")
        self.config = config or load_config()
        # 사용자 단축키 재매핑 저장소
        self.settings = QSettings("EdenVilla", "Tour360")
        self.resize(1100, 720)

        central = QWidget(self)
        self.main_layout = QVBoxLayout(central)
        self.main_layout.setContentsMargins(20, 20, 20, 20)
        self.main_layout.setSpacing(12)
        self.title_label = QLabel("Take a 360° tour of Paradise Eden Villa", central)
        self.title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.title_label.setStyleSheet("font-size: 20px; font-weight: bold;")
        self.main_layout.addWidget(self.title_label)

        # 마운트 지점
        self.tour_container = QWidget(central)
        self.tour_container.setObjectName(DEFAULT_CONTAINER)
        self.main_layout.addWidget(self.tour_container)
        self.main_layout.addStretch(1)
        self.setCentralWidget(central)

        self.status_label = QLabel("", self)
        self.statusBar().addPermanentWidget(self.status_label)

        url = image_url or (self.config.default_image or None)
        self.viewer = mount_tour_viewer(self, DEFAULT_CONTAINER, image_url=url, config=self.config,
                                        settings=self.settings)  # type: TourViewer | None
        if self.viewer is not None:
            self.viewer.viewChanged.connect(self._update_status)
            self._update_status(self.viewer.state.snapshot())

    def _update_status(self, state: ViewState) -> None:
        self.status_label.setText(
            f"Yaw {state.yaw:.1f}°  Pitch {state.pitch:.1f}°  Zoom {int(round(state.zoom_scale * 100))}%"
            + ("  [Fullscreen]" if state.is_fullscreen else "")
        )

    def closeEvent(self, event):
        if self.viewer is not None:
            self.viewer.image_service.shutdown()
        super().closeEvent(event)
