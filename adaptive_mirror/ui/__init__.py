from .main_window import MainWindow
from .result_widget import ResultWidget

__all__ = ["MainWindow", "ResultWidget"]
