"""Qt models and the journal manager used by the journal views.

``SelectionListModel`` exposes a :class:`SelectionList` to QML list views.
``JournalManager`` owns the in-memory journal, keeps one model per level of
the tree in sync with the current selection, and runs prompt and file
requests. Only one request is active at a time; the request enums are the
whole of the UI focus state.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from PySide6.QtCore import (
    QAbstractListModel,
    QModelIndex,
    QObject,
    Property,
    Qt,
    QUrl,
    Signal,
    Slot,
)

import journal_store
from journal_crypto import CryptoError
from journal_model import Journal
from journal_store import DEFAULT_JOURNAL_FILENAME, StoreError
from selection_list import IndexOutOfRangeError, NoSelectionError, SelectionList


class FeedbackKind(Enum):
    """Severity of the message shown to the user."""

    NOMINAL = "nominal"
    ERROR = "error"


class PromptRequest(Enum):
    """Text prompts the manager can ask for."""

    SET_PASSWORD = "set_password"
    SET_PROJECT_PASSWORD = "set_project_password"
    RENAME_JOURNAL = "rename_journal"
    ADD_PROJECT = "add_project"
    RENAME_PROJECT = "rename_project"
    ADD_SUBPROJECT = "add_subproject"
    RENAME_SUBPROJECT = "rename_subproject"
    ADD_TASK = "add_task"
    RENAME_TASK = "rename_task"
    LOAD_PASSWORD = "load_password"
    MERGE_PASSWORD = "merge_password"


class FileRequest(Enum):
    """What the file picker result will be used for."""

    SAVE = "save"
    LOAD = "load"
    LOAD_MERGE = "load_merge"


PROMPT_TEXT: Dict[PromptRequest, str] = {
    PromptRequest.SET_PASSWORD: "New journal password:",
    PromptRequest.SET_PROJECT_PASSWORD: "New project password:",
    PromptRequest.RENAME_JOURNAL: "New Journal Name:",
    PromptRequest.ADD_PROJECT: "New Project Name:",
    PromptRequest.RENAME_PROJECT: "New Project Name:",
    PromptRequest.ADD_SUBPROJECT: "New Subproject Name:",
    PromptRequest.RENAME_SUBPROJECT: "New Subproject Name:",
    PromptRequest.ADD_TASK: "New Task:",
    PromptRequest.RENAME_TASK: "Rename Task:",
    PromptRequest.LOAD_PASSWORD: "Password:",
    PromptRequest.MERGE_PASSWORD: "Password:",
}

PASSWORD_PROMPTS = {
    PromptRequest.SET_PASSWORD,
    PromptRequest.SET_PROJECT_PASSWORD,
    PromptRequest.LOAD_PASSWORD,
    PromptRequest.MERGE_PASSWORD,
}

FILE_TITLES: Dict[FileRequest, str] = {
    FileRequest.SAVE: "Save Journal:",
    FileRequest.LOAD: "Open Journal:",
    FileRequest.LOAD_MERGE: "Merge Journal:",
}


class SelectionListModel(QAbstractListModel):
    """Qt model over a SelectionList, including its cursor."""

    NameRole = Qt.UserRole + 1
    SelectedRole = Qt.UserRole + 2
    IndexRole = Qt.UserRole + 3

    countChanged = Signal()
    selectionChanged = Signal()
    itemsMoved = Signal()  # Emitted after the selected item was reordered

    def __init__(self, source: Optional[SelectionList] = None):
        super().__init__()
        self._source: SelectionList = source if source is not None else SelectionList()

    def source(self) -> SelectionList:
        return self._source

    def setSource(self, source: Optional[SelectionList]) -> None:
        """Point the model at another list and reset views."""
        self.beginResetModel()
        self._source = source if source is not None else SelectionList()
        self.endResetModel()
        self.countChanged.emit()
        self.selectionChanged.emit()

    def refresh(self) -> None:
        """Re-read the current list after it was mutated elsewhere."""
        self.setSource(self._source)

    def rowCount(self, parent: Optional[QModelIndex] = QModelIndex()) -> int:  # type: ignore[override]
        return len(self._source)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._source)):
            return None

        row = index.row()
        if role in (self.NameRole, Qt.DisplayRole):
            return str(self._source.get_item(row))
        if role == self.SelectedRole:
            return row == self._source.selection
        if role == self.IndexRole:
            return row
        return None

    def roleNames(self) -> Dict[int, bytes]:  # type: ignore[override]
        return {
            self.NameRole: b"name",
            self.SelectedRole: b"selected",
            self.IndexRole: b"itemIndex",
        }

    @Property(int, notify=countChanged)
    def count(self) -> int:
        return len(self._source)

    @Property(int, notify=selectionChanged)
    def selectionIndex(self) -> int:
        """Selected row, or -1 when nothing is selected."""
        selection = self._source.selection
        return -1 if selection is None else selection

    @Property(str, notify=selectionChanged)
    def selectedText(self) -> str:
        item = self._source.selected()
        return "" if item is None else str(item)

    @Slot(result=list)
    def asStrings(self) -> List[str]:
        return self._source.as_strings()

    def _selectionUpdated(self, previous: Optional[int]) -> None:
        current = self._source.selection
        if previous == current:
            return
        for row in (previous, current):
            if row is not None and 0 <= row < len(self._source):
                model_index = self.index(row, 0)
                self.dataChanged.emit(model_index, model_index, [self.SelectedRole])
        self.selectionChanged.emit()

    @Slot()
    def selectNext(self) -> None:
        previous = self._source.selection
        self._source.select_next()
        self._selectionUpdated(previous)

    @Slot()
    def selectPrev(self) -> None:
        previous = self._source.selection
        self._source.select_prev()
        self._selectionUpdated(previous)

    @Slot(int, result=bool)
    def select(self, index: int) -> bool:
        previous = self._source.selection
        try:
            self._source.select(index)
        except IndexOutOfRangeError:
            return False
        self._selectionUpdated(previous)
        return True

    @Slot()
    def deselect(self) -> None:
        previous = self._source.selection
        self._source.deselect()
        self._selectionUpdated(previous)

    @Slot(result=bool)
    def shiftNext(self) -> bool:
        return self._shift(self._source.shift_next)

    @Slot(result=bool)
    def shiftPrev(self) -> bool:
        return self._shift(self._source.shift_prev)

    def _shift(self, move) -> bool:
        try:
            move()
        except NoSelectionError:
            return False
        if len(self._source) > 0:
            self.dataChanged.emit(self.index(0, 0), self.index(len(self._source) - 1, 0))
        self.selectionChanged.emit()
        self.itemsMoved.emit()
        return True


class JournalManager(QObject):
    """Owns the current journal and runs every edit, save and load on it."""

    saveCompleted = Signal(str)  # Emitted with file path after successful save
    loadCompleted = Signal(str)  # Emitted with file path after successful load or merge
    errorOccurred = Signal(str)  # Emitted with error message on failure
    feedbackChanged = Signal()
    journalChanged = Signal()
    promptChanged = Signal()
    currentFilePathChanged = Signal()

    def __init__(self, datadir: Optional[Union[str, Path]] = None):
        super().__init__()
        self._datadir = Path(datadir) if datadir else journal_store.data_dir()
        self._journal = Journal.default()
        self._filepath = self._datadir / DEFAULT_JOURNAL_FILENAME
        self._prompt_request: Optional[PromptRequest] = None
        self._file_request: Optional[FileRequest] = None
        self._pending_file = ""
        self._feedback_text = "Welcome to Dev Journal"
        self._feedback_kind = FeedbackKind.NOMINAL

        self._project_model = SelectionListModel()
        self._subproject_model = SelectionListModel()
        self._task_model = SelectionListModel()
        self._file_model = SelectionListModel()

        self._project_model.selectionChanged.connect(self._syncSubprojects)
        self._subproject_model.selectionChanged.connect(self._syncTasks)
        self._project_model.itemsMoved.connect(self._markJournalDirty)
        self._subproject_model.itemsMoved.connect(self._markProjectDirty)
        self._task_model.itemsMoved.connect(self._markProjectDirty)

        self._syncModels()
        self.refreshFiles()

    # -----------------------------------------------------------------
    # State exposed to views
    # -----------------------------------------------------------------

    @property
    def journal(self) -> Journal:
        return self._journal

    @property
    def datadir(self) -> Path:
        return self._datadir

    @property
    def promptRequest(self) -> Optional[PromptRequest]:
        return self._prompt_request

    @property
    def fileRequest(self) -> Optional[FileRequest]:
        return self._file_request

    @property
    def feedbackKind(self) -> FeedbackKind:
        return self._feedback_kind

    @Property(QObject, constant=True)
    def projectModel(self) -> SelectionListModel:
        return self._project_model

    @Property(QObject, constant=True)
    def subprojectModel(self) -> SelectionListModel:
        return self._subproject_model

    @Property(QObject, constant=True)
    def taskModel(self) -> SelectionListModel:
        return self._task_model

    @Property(QObject, constant=True)
    def fileModel(self) -> SelectionListModel:
        return self._file_model

    @Property(str, notify=currentFilePathChanged)
    def currentFilePath(self) -> str:
        return str(self._filepath)

    @Property(str, notify=journalChanged)
    def journalName(self) -> str:
        return self._journal.name

    @Property(bool, notify=journalChanged)
    def isDirty(self) -> bool:
        return self._journal.is_dirty()

    @Property(str, notify=feedbackChanged)
    def feedbackText(self) -> str:
        return self._feedback_text

    @Property(bool, notify=feedbackChanged)
    def feedbackIsError(self) -> bool:
        return self._feedback_kind is FeedbackKind.ERROR

    @Property(str, notify=promptChanged)
    def promptText(self) -> str:
        if self._prompt_request is None:
            return ""
        if self._prompt_request in (PromptRequest.LOAD_PASSWORD, PromptRequest.MERGE_PASSWORD):
            return f"Password for `{self._pending_file}`:"
        return PROMPT_TEXT[self._prompt_request]

    @Property(bool, notify=promptChanged)
    def promptIsPassword(self) -> bool:
        return self._prompt_request in PASSWORD_PROMPTS

    @Property(str, notify=promptChanged)
    def fileTitle(self) -> str:
        return FILE_TITLES[self._file_request] if self._file_request is not None else ""

    # -----------------------------------------------------------------
    # Feedback
    # -----------------------------------------------------------------

    def _setFeedback(self, message: str, kind: FeedbackKind) -> None:
        self._feedback_text = message
        self._feedback_kind = kind
        self.feedbackChanged.emit()

    def _report(self, message: str) -> None:
        self._setFeedback(message, FeedbackKind.NOMINAL)
        print(message)

    def _reportError(self, message: str) -> None:
        self._setFeedback(message, FeedbackKind.ERROR)
        self.errorOccurred.emit(message)
        print(message)

    # -----------------------------------------------------------------
    # Model syncing
    # -----------------------------------------------------------------

    def _syncModels(self) -> None:
        self._project_model.setSource(self._journal.projects)
        self.journalChanged.emit()

    def _syncSubprojects(self) -> None:
        project = self._journal.project()
        self._subproject_model.setSource(project.subprojects if project is not None else None)

    def _syncTasks(self) -> None:
        subproject = self._journal.subproject()
        self._task_model.setSource(subproject.tasks if subproject is not None else None)

    def _markJournalDirty(self) -> None:
        self._journal.dirty = True
        self.journalChanged.emit()

    def _markProjectDirty(self) -> None:
        project = self._journal.project()
        if project is not None:
            project.dirty = True
        self.journalChanged.emit()

    def _edited(self) -> None:
        """Refresh every level after a structural edit."""
        self._project_model.refresh()
        self.journalChanged.emit()

    def _resolvePath(self, file_path: str) -> Path:
        """Turn a picker result or file URL into a path inside the data dir."""
        if file_path.startswith("file:"):
            url = QUrl(file_path)
            file_path = url.toLocalFile() if url.isLocalFile() else url.path()
        path = Path(file_path)
        return path if path.is_absolute() else self._datadir / path

    def _replaceJournal(self, journal: Journal, path: Optional[Path]) -> None:
        self._journal = journal
        if path is not None and path != self._filepath:
            self._filepath = path
            self.currentFilePathChanged.emit()
        self._syncModels()

    def _rememberPath(self, path: Path) -> None:
        try:
            journal_store.write_last_path(self._datadir, path)
        except StoreError as e:
            self._reportError(f"Failed to remember last file: {e}")

    # -----------------------------------------------------------------
    # Prompt and file requests
    # -----------------------------------------------------------------

    @Slot(str)
    def requestPrompt(self, request: Union[PromptRequest, str]) -> None:
        """Open a text prompt; replaces any open file request."""
        self._prompt_request = PromptRequest(request)
        self._file_request = None
        self.promptChanged.emit()

    @Slot(result=str)
    def promptPrefill(self) -> str:
        """Current value shown in a rename prompt."""
        if self._prompt_request is PromptRequest.RENAME_JOURNAL:
            return self._journal.name
        if self._prompt_request is PromptRequest.RENAME_PROJECT:
            project = self._journal.project()
            return project.name if project is not None else ""
        if self._prompt_request is PromptRequest.RENAME_SUBPROJECT:
            subproject = self._journal.subproject()
            return subproject.name if subproject is not None else ""
        if self._prompt_request is PromptRequest.RENAME_TASK:
            task = self._journal.task()
            return task.desc if task is not None else ""
        return ""

    @Slot()
    def cancel(self) -> None:
        self._prompt_request = None
        self._file_request = None
        self._pending_file = ""
        self.promptChanged.emit()

    @Slot(str)
    def submitPrompt(self, text: str) -> None:
        """Apply the open prompt's result."""
        request = self._prompt_request
        if request is None:
            return
        pending_file = self._pending_file
        self.cancel()

        if request is PromptRequest.SET_PASSWORD:
            self._journal.set_password(text)
            self._report(f"Reset password for `{self._journal.name}`")
            self.journalChanged.emit()
        elif request is PromptRequest.SET_PROJECT_PASSWORD:
            project = self._journal.project()
            if project is not None:
                project.set_password(text)
                self._report(f"Reset password for project `{project.name}`")
                self.journalChanged.emit()
        elif request is PromptRequest.RENAME_JOURNAL:
            self.renameJournal(text)
        elif request is PromptRequest.ADD_PROJECT:
            self.addProject(text)
        elif request is PromptRequest.RENAME_PROJECT:
            self.renameProject(text)
        elif request is PromptRequest.ADD_SUBPROJECT:
            self.addSubProject(text)
        elif request is PromptRequest.RENAME_SUBPROJECT:
            self.renameSubProject(text)
        elif request is PromptRequest.ADD_TASK:
            self.addTask(text)
        elif request is PromptRequest.RENAME_TASK:
            self.renameTask(text)
        elif request is PromptRequest.LOAD_PASSWORD:
            self.loadJournal(pending_file, text)
        elif request is PromptRequest.MERGE_PASSWORD:
            self.mergeJournal(pending_file, text)

    @Slot(str)
    def requestFile(self, request: Union[FileRequest, str]) -> None:
        """Open the file picker for saving, loading or merging."""
        self._file_request = FileRequest(request)
        self._prompt_request = None
        self.refreshFiles()
        self.promptChanged.emit()

    @Slot(str)
    def submitFile(self, name: str) -> None:
        """Use the picked (or typed) file name for the open file request."""
        request = self._file_request
        if request is None:
            return
        name = name.strip()
        if not name:
            self._reportError("No file name specified")
            return
        self.cancel()

        if request is FileRequest.SAVE:
            self.saveJournalAs(name)
            return
        self._pending_file = name
        self._prompt_request = (
            PromptRequest.LOAD_PASSWORD if request is FileRequest.LOAD else PromptRequest.MERGE_PASSWORD
        )
        self.promptChanged.emit()

    # -----------------------------------------------------------------
    # Files
    # -----------------------------------------------------------------

    @Slot()
    def refreshFiles(self) -> None:
        try:
            names = journal_store.list_data_files(self._datadir)
        except StoreError as e:
            self._reportError(str(e))
            return
        files = SelectionList(names)
        files.select_next()
        self._file_model.setSource(files)

    @Slot(str)
    def deleteFile(self, name: str) -> None:
        try:
            journal_store.delete_data_file(self._datadir, name)
        except StoreError as e:
            self._reportError(str(e))
            return
        self.refreshFiles()
        self._report(f"Deleted journal file: {name}")

    @Slot()
    def deleteSelectedFile(self) -> None:
        name = self._file_model.source().selected()
        if name is not None:
            self.deleteFile(name)

    @Slot()
    def newJournal(self) -> None:
        self._replaceJournal(Journal.default(), self._datadir / DEFAULT_JOURNAL_FILENAME)
        self._report("New journal created")

    @Slot()
    def saveJournal(self) -> None:
        """Save to the current file path with the journal's password."""
        self._saveTo(self._filepath)

    @Slot(str)
    def saveJournalAs(self, file_path: str) -> None:
        if not file_path:
            self._reportError("No file path specified")
            return
        self._saveTo(self._resolvePath(file_path))

    def _saveTo(self, path: Path) -> None:
        try:
            journal_store.save(self._journal, path, self._journal.password)
        except (StoreError, CryptoError) as e:
            self._reportError(f"Failed to save journal: {e}")
            return

        self._journal.mark_clean()
        if path != self._filepath:
            self._filepath = path
            self.currentFilePathChanged.emit()
        self._rememberPath(path)
        self.refreshFiles()
        self.journalChanged.emit()
        self.saveCompleted.emit(str(path))
        self._report(f"Saved journal: {path}")

    @Slot(str)
    def saveProjectAs(self, file_path: str) -> None:
        """Save the selected project on its own, under its own password."""
        project = self._journal.project()
        if project is None:
            self._reportError("No project selected")
            return
        if not file_path:
            self._reportError("No file path specified")
            return
        path = self._resolvePath(file_path)
        try:
            journal_store.save(project, path, project.password)
        except (StoreError, CryptoError) as e:
            self._reportError(f"Failed to save project: {e}")
            return
        self.refreshFiles()
        self.saveCompleted.emit(str(path))
        self._report(f"Saved project: {path}")

    @Slot(str, str, result=bool)
    def loadJournal(self, file_path: str, password: str) -> bool:
        """Replace the current journal with the one stored at ``file_path``.

        A missing file is created with a default journal. On failure the
        current journal is left as it was.
        """
        if not file_path:
            self._reportError("No file path specified")
            return False
        path = self._resolvePath(file_path)
        try:
            journal = journal_store.load_journal(path, password)
        except (StoreError, CryptoError) as e:
            self._reportError(f"Failed to load journal: {e}")
            return False

        # Files written as a single project carry the project's password.
        journal.password = password
        self._replaceJournal(journal, path)
        self._rememberPath(path)
        self.refreshFiles()
        self.loadCompleted.emit(str(path))
        self._report(f"Loaded journal: {path}")
        return True

    @Slot(str, str)
    def mergeJournal(self, file_path: str, password: str) -> None:
        """Append the projects of another journal file to the current one."""
        if not file_path:
            self._reportError("No file path specified")
            return
        path = self._resolvePath(file_path)
        try:
            merged = journal_store.load_merge(self._journal, path, password)
        except (StoreError, CryptoError) as e:
            self._reportError(f"Failed to merge journal: {e}")
            return

        selection = self._journal.projects.selection
        if len(merged.projects) > 0:
            merged.projects.select(selection if selection is not None else 0)
        merged.dirty = True
        self._replaceJournal(merged, None)
        self.loadCompleted.emit(str(path))
        self._report(f"Merged journal: {path}")

    @Slot(str, result=bool)
    def resumeLastJournal(self, password: str) -> bool:
        """Reopen the file recorded in ``.config``."""
        try:
            last_path = journal_store.read_last_path(self._datadir)
        except StoreError as e:
            self._reportError(str(e))
            return False
        if last_path is None:
            return False
        return self.loadJournal(str(last_path), password)

    # -----------------------------------------------------------------
    # Journal edits
    # -----------------------------------------------------------------

    @Slot(str)
    def renameJournal(self, name: str) -> None:
        name = name.strip()
        if not name:
            return
        self._journal.rename(name)
        self.journalChanged.emit()
        self._report(f"Renamed journal: {name}")

    @Slot(str)
    def addProject(self, name: str) -> None:
        name = name.strip()
        if not name:
            return
        self._journal.add_project(name)
        self._edited()

    @Slot(str)
    def renameProject(self, name: str) -> None:
        name = name.strip()
        project = self._journal.project()
        if not name or project is None:
            return
        project.rename(name)
        self._edited()
        self._report(f"Renamed project: {name}")

    @Slot()
    def deleteProject(self) -> None:
        if self._journal.delete_project() is not None:
            self._edited()

    @Slot(str)
    def addSubProject(self, name: str) -> None:
        name = name.strip()
        project = self._journal.project()
        if not name or project is None:
            return
        project.add_subproject(name)
        self._edited()

    @Slot(str)
    def renameSubProject(self, name: str) -> None:
        name = name.strip()
        project = self._journal.project()
        if name and project is not None and project.rename_subproject(name):
            self._edited()

    @Slot()
    def deleteSubProject(self) -> None:
        project = self._journal.project()
        if project is not None and project.delete_subproject() is not None:
            self._edited()

    @Slot(str)
    def addTask(self, desc: str) -> None:
        desc = desc.strip()
        project = self._journal.project()
        if not desc or project is None:
            return
        if project.subproject() is None and len(project.subprojects) > 0:
            project.subprojects.select(0)
        if project.add_task(desc) is None:
            self._reportError("Add a subproject before adding tasks")
            return
        self._edited()

    @Slot(str)
    def renameTask(self, desc: str) -> None:
        desc = desc.strip()
        project = self._journal.project()
        if desc and project is not None and project.rename_task(desc) is not None:
            self._edited()

    @Slot()
    def toggleTask(self) -> None:
        project = self._journal.project()
        if project is not None and project.toggle_task() is not None:
            self._edited()

    @Slot()
    def deleteTask(self) -> None:
        project = self._journal.project()
        if project is not None and project.delete_task() is not None:
            self._edited()

    @Slot()
    def moveTaskNext(self) -> None:
        project = self._journal.project()
        if project is not None and project.move_task_next():
            self._edited()

    @Slot()
    def moveTaskPrev(self) -> None:
        project = self._journal.project()
        if project is not None and project.move_task_prev():
            self._edited()

    @Slot(int)
    def resizeFocus(self, delta: int) -> None:
        project = self._journal.project()
        if project is not None:
            project.resize_focus(delta)
            self.journalChanged.emit()

    @Slot()
    def toggleSplit(self) -> None:
        project = self._journal.project()
        if project is not None:
            project.toggle_split()
            self.journalChanged.emit()

