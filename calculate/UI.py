# UI.py
"""PySide6 user interface for the calculator.

Structure
---------
- CalculatorWindow: result display, expression input with history, variable list
- SettingsDialog: modal dialog for the values in config.json

Threading Note
--------------
Evaluation runs off the UI thread in Worker(QObject); the result (or the
MathError) comes back through a Qt signal. The window owns the session
Environment and never starts a second evaluation while one is running, so the
environment is never read and written concurrently.
"""

import logging
import threading

import pyperclip
from PySide6 import QtWidgets
from PySide6.QtCore import QObject, Qt, Signal
from pynput.keyboard import Controller

from . import MathEngine
from . import config_manager
from . import error as E
from .Environment import new_environment

logger = logging.getLogger(__name__)

DARK_STYLESHEET = """
    QWidget {background-color: #121212; color: white;}
    QLineEdit {background-color: #2e2e2e; color: white; border: 1px solid #444444;}
    QListWidget {background-color: #1e1e1e; color: white;}
    QPushButton {background-color: #2e2e2e; color: white; font-weight: bold;}
"""

RETURN_IDLE_STYLE = "background-color: #007bff; color: white; font-weight: bold;"
RETURN_BUSY_STYLE = "background-color: #FF0000; color: white; font-weight: bold;"


def is_shift_pressed():
    """Used for the "shift to copy" behaviour of the clipboard button."""
    keyboard_controller = Controller()
    return keyboard_controller.shift_pressed


class Worker(QObject):
    """Runs one calculation in a separate thread and reports back via job_finished."""

    job_finished = Signal(object, str)

    def __init__(self, problem, env, settings):
        super().__init__()
        self.data = problem
        self.env = env
        self.settings = settings

    def run_Calc(self):
        try:
            result = MathEngine.calculate(self.data, self.env, self.settings)
            self.job_finished.emit(result, self.data)

        except E.MathError as e:
            # Known, handled error (e.g. "Division by zero")
            self.job_finished.emit(e, self.data)

        except Exception as e:
            # Unexpected crash; still reported instead of killing the thread silently
            logger.exception("Calculation of %r crashed", self.data)
            critical_error = E.MathError(message=f"Unexpected crash: {e}", code="9999", equation=self.data)
            self.job_finished.emit(critical_error, self.data)


class HistoryLineEdit(QtWidgets.QLineEdit):
    """Expression input; Up/Down walk through previously entered lines."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.history = []
        self.history_index = 0

    def remember(self, line):
        if line and (not self.history or self.history[-1] != line):
            self.history.append(line)
        self.history_index = len(self.history)

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Up and self.history:
            self.history_index = max(self.history_index - 1, 0)
            self.setText(self.history[self.history_index])
            return
        if event.key() == Qt.Key.Key_Down and self.history:
            self.history_index = min(self.history_index + 1, len(self.history))
            if self.history_index == len(self.history):
                self.clear()
            else:
                self.setText(self.history[self.history_index])
            return
        super().keyPressEvent(event)


class SettingsDialog(QtWidgets.QDialog):
    """Checkboxes for boolean settings, input fields for integer settings."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.widgets = {}

        self.setWindowTitle("Calculator Settings")
        self.setMinimumWidth(360)
        main_layout = QtWidgets.QVBoxLayout(self)

        self.setting_value_list = config_manager.load_setting_value("all")
        descriptions = config_manager.load_setting_description("all")

        for key_value, value in self.setting_value_list.items():
            description = descriptions.get(key_value, key_value)

            if isinstance(value, bool):
                checkbox = QtWidgets.QCheckBox(description)
                checkbox.setChecked(value)
                main_layout.addWidget(checkbox)
                self.widgets[key_value] = checkbox

            else:
                row_h_layout = QtWidgets.QHBoxLayout()
                main_layout.addLayout(row_h_layout)
                input_field = QtWidgets.QLineEdit()
                input_field.setPlaceholderText(str(value))
                row_h_layout.addWidget(QtWidgets.QLabel(description + ":"))
                row_h_layout.addWidget(input_field)
                row_h_layout.setStretch(1, 1)
                self.widgets[key_value] = input_field

        button_box = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.StandardButton.Ok | QtWidgets.QDialogButtonBox.StandardButton.Cancel
        )
        main_layout.addWidget(button_box)
        button_box.accepted.connect(self.save_settings)
        button_box.rejected.connect(self.reject)

        if self.setting_value_list["darkmode"]:
            self.setStyleSheet(DARK_STYLESHEET)

    def save_settings(self):
        new_values = dict(self.setting_value_list)
        try:
            for key_value, widget in self.widgets.items():
                if isinstance(widget, QtWidgets.QCheckBox):
                    new_values[key_value] = widget.isChecked()
                else:
                    text = widget.text().strip()
                    # Blank keeps the old value
                    if text:
                        new_values[key_value] = int(text)

            # Validate the engine values before anything is written
            config_manager.Settings.from_dict(new_values)

        except ValueError as e:
            QtWidgets.QMessageBox.critical(self, "Invalid Input", f"Please enter whole numbers.\n\n{e}")
            return
        except E.ConfigError as e:
            QtWidgets.QMessageBox.critical(self, "Invalid Input", e.message)
            return

        if config_manager.save_setting(new_values) != {}:
            self.accept()
        else:
            QtWidgets.QMessageBox.critical(
                self, "Error", "Error 4501: " + E.ERROR_MESSAGES["4501"] + str(config_manager.config_json)
            )


class CalculatorWindow(QtWidgets.QWidget):

    def __init__(self, settings):
        super().__init__()

        # --- 1. Session State ---
        self.settings = settings
        self.setting_value_list = config_manager.load_setting_value("all")
        self.env = new_environment()
        self.thread_active = False

        # --- 2. Window Setup ---
        self.setWindowTitle("Calculator")
        self.resize(420, 520)
        main_v_layout = QtWidgets.QVBoxLayout(self)

        # --- 3. Result display ---
        self.display = QtWidgets.QLineEdit("0")
        self.display.setAlignment(Qt.AlignmentFlag.AlignRight)
        self.display.setReadOnly(True)
        font = self.display.font()
        font.setPointSize(24)
        self.display.setFont(font)
        main_v_layout.addWidget(self.display)

        # --- 4. Input line ---
        self.input = HistoryLineEdit()
        self.input.setPlaceholderText("Expression, or name = expression")
        self.input.returnPressed.connect(self.start_calculation)
        main_v_layout.addWidget(self.input)

        # --- 5. Buttons ---
        button_row = QtWidgets.QHBoxLayout()
        main_v_layout.addLayout(button_row)
        self.settings_button = QtWidgets.QPushButton("⚙️")
        self.settings_button.clicked.connect(self.open_settings)
        self.clipboard_button = QtWidgets.QPushButton("📋")
        self.clipboard_button.setToolTip("Paste; hold Shift to copy the result")
        self.clipboard_button.clicked.connect(self.handle_clipboard)
        self.return_button = QtWidgets.QPushButton("⏎")
        self.return_button.clicked.connect(self.start_calculation)
        for button in (self.settings_button, self.clipboard_button, self.return_button):
            button_row.addWidget(button)

        # --- 6. Variables ---
        self.variable_list = QtWidgets.QListWidget()
        main_v_layout.addWidget(self.variable_list, 1)

        self.update_variables()
        self.update_return_button()
        self.update_darkmode()

    # --- Calculation ---
    def start_calculation(self):
        problem = self.input.text().strip()
        if not problem:
            return
        if self.thread_active:
            logger.warning("Calculation already running")  # 4002
            return

        self.thread_active = True
        self.update_return_button()
        self.input.remember(problem)
        self.display.setText("...")

        worker_instance = Worker(problem, self.env, self.settings)
        worker_instance.job_finished.connect(self.Calc_result)
        # Keep a reference until the signal arrives.
        self.worker = worker_instance
        threading.Thread(target=worker_instance.run_Calc, daemon=True).start()

    def Calc_result(self, result, equation):
        self.thread_active = False
        self.update_return_button()

        if isinstance(result, E.MathError):
            error_box = QtWidgets.QMessageBox(self)
            error_box.setIcon(QtWidgets.QMessageBox.Icon.Critical)
            error_box.setWindowTitle("Calculation error")
            error_box.setText(f"Error {result.code}: {E.ERROR_MESSAGES.get(result.code, 'Unknown error')}")
            error_box.setInformativeText(f"Details: {result}\nEquation: {result.equation}")
            error_box.exec()
            self.display.setText(equation)
            return

        if self.setting_value_list["show_equation"]:
            self.display.setText(f"{equation} {result}")
        else:
            self.display.setText(str(result))
        self.input.clear()
        self.update_variables()

    # --- Helpers ---
    def handle_clipboard(self):
        if is_shift_pressed():
            pyperclip.copy(self.display.text())
            return

        clipboard_text = QtWidgets.QApplication.clipboard().text().strip()
        if not clipboard_text:
            return
        self.input.setText(self.input.text() + clipboard_text)
        if self.setting_value_list["after_paste_enter"]:
            self.start_calculation()

    def update_variables(self):
        self.variable_list.clear()
        for name, value in self.env.variables().items():
            self.variable_list.addItem(f"{name} = {MathEngine.format_decimal(value, self.settings.decimal_places)}")

    def update_return_button(self):
        if self.thread_active:
            self.return_button.setStyleSheet(RETURN_BUSY_STYLE)
            self.return_button.setText("X")
        else:
            self.return_button.setStyleSheet(RETURN_IDLE_STYLE)
            self.return_button.setText("⏎")

    def update_darkmode(self):
        if self.setting_value_list["darkmode"]:
            self.setStyleSheet(DARK_STYLESHEET)
        else:
            self.setStyleSheet("")
        self.update_return_button()

    def open_settings(self):
        settings_dialog = SettingsDialog(self)
        if settings_dialog.exec():
            # Reload so theme and engine changes apply to the next calculation
            self.setting_value_list = config_manager.load_setting_value("all")
            self.settings = config_manager.load_settings()
            self.update_darkmode()
            self.update_variables()


def main(settings=None):
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    window = CalculatorWindow(settings or config_manager.load_settings())
    window.show()
    return app.exec()
