"""Journal domain model.

A journal holds projects, a project holds subprojects and a subproject holds
tasks. Every level keeps its children in a :class:`SelectionList`, so "the
current task" is reached by following the selection at each level.

Mutating helpers mark the owning project or journal dirty; nothing is saved
until the caller asks for it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional

from selection_list import SelectionList

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_JOURNAL_NAME = "New Journal"
DEFAULT_PROJECT_NAME = "New Project"
DEFAULT_SUBPROJECT_NAME = "Tasks"
DEFAULT_WIDTH_PERCENT = 40
MIN_WIDTH_PERCENT = 5
MAX_WIDTH_PERCENT = 95


def _now() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def _require_dict(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


@dataclass(frozen=True)
class Task:
    """A single task; edits produce a new value."""

    desc: str
    created_at: str = field(default_factory=_now)
    completed_at: Optional[str] = None

    def __str__(self) -> str:
        return self.desc

    @property
    def completed(self) -> bool:
        return self.completed_at is not None

    def renamed(self, desc: str) -> "Task":
        return replace(self, desc=desc)

    def complete(self) -> "Task":
        return replace(self, completed_at=_now())

    def reopen(self) -> "Task":
        return replace(self, completed_at=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "desc": self.desc,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        data = _require_dict(data, "task")
        completed_at = data.get("completed_at")
        if completed_at is not None and not isinstance(completed_at, str):
            raise TypeError("completed_at must be a string or null")
        return cls(
            desc=_require_str(data, "desc"),
            created_at=_require_str(data, "created_at"),
            completed_at=completed_at,
        )


@dataclass
class SubProject:
    """A named column of tasks inside a project."""

    name: str = DEFAULT_SUBPROJECT_NAME
    tasks: SelectionList[Task] = field(default_factory=SelectionList)

    def __str__(self) -> str:
        return self.name

    def task(self) -> Optional[Task]:
        return self.tasks.get_item()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "tasks": self.tasks.to_dict(Task.to_dict),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubProject":
        data = _require_dict(data, "subproject")
        return cls(
            name=_require_str(data, "name"),
            tasks=SelectionList.from_dict(data["tasks"], Task.from_dict),
        )


@dataclass
class Project:
    """A project: subprojects plus its own password and layout hints.

    ``password`` encrypts the project when it is saved as a standalone file;
    it is independent of the password of any journal containing it.
    """

    name: str = DEFAULT_PROJECT_NAME
    password: str = ""
    subprojects: SelectionList[SubProject] = field(default_factory=SelectionList)
    focused_width_percent: int = DEFAULT_WIDTH_PERCENT
    split_vertical: bool = False
    dirty: bool = field(default=False, compare=False, repr=False)

    @classmethod
    def default(cls) -> "Project":
        return cls(subprojects=SelectionList([SubProject()]))

    def __str__(self) -> str:
        return self.name

    def subproject(self) -> Optional[SubProject]:
        return self.subprojects.get_item()

    def task(self) -> Optional[Task]:
        subproject = self.subproject()
        return subproject.task() if subproject is not None else None

    def rename(self, name: str) -> None:
        self.name = name
        self.dirty = True

    def set_password(self, password: str) -> None:
        self.password = password
        self.dirty = True

    def add_subproject(self, name: str) -> SubProject:
        subproject = SubProject(name=name)
        self.subprojects.add_item(subproject, select=True)
        self.bind_focus_width()
        self.dirty = True
        return subproject

    def rename_subproject(self, name: str) -> bool:
        subproject = self.subproject()
        if subproject is None:
            return False
        subproject.name = name
        self.dirty = True
        return True

    def delete_subproject(self) -> Optional[SubProject]:
        removed = self.subprojects.pop_selected()
        if removed is not None:
            self.bind_focus_width()
            self.dirty = True
        return removed

    def add_task(self, desc: str) -> Optional[Task]:
        """Add a task after the current one in the selected subproject."""
        subproject = self.subproject()
        if subproject is None:
            return None
        task = Task(desc=desc)
        subproject.tasks.add_item(task, select=True)
        self.dirty = True
        return task

    def rename_task(self, desc: str) -> Optional[Task]:
        subproject = self.subproject()
        task = self.task()
        if subproject is None or task is None:
            return None
        renamed = task.renamed(desc)
        subproject.tasks.replace_selected(renamed)
        self.dirty = True
        return renamed

    def toggle_task(self) -> Optional[Task]:
        subproject = self.subproject()
        task = self.task()
        if subproject is None or task is None:
            return None
        toggled = task.reopen() if task.completed else task.complete()
        subproject.tasks.replace_selected(toggled)
        self.dirty = True
        return toggled

    def delete_task(self) -> Optional[Task]:
        subproject = self.subproject()
        if subproject is None:
            return None
        removed = subproject.tasks.pop_selected()
        if removed is not None:
            self.dirty = True
        return removed

    def move_task_next(self) -> bool:
        """Move the selected task into the next subproject and follow it."""
        return self._move_task(self.subprojects.next_index())

    def move_task_prev(self) -> bool:
        """Move the selected task into the previous subproject and follow it."""
        return self._move_task(self.subprojects.prev_index())

    def _move_task(self, target_index: Optional[int]) -> bool:
        source = self.subproject()
        if source is None or target_index is None:
            return False
        task = source.tasks.pop_selected()
        if task is None:
            return False
        target = self.subprojects.get_item(target_index)
        # Lands in front of the target's selected task, or at the top.
        target.tasks.insert_item(target.tasks.selection, task, select=True)
        self.subprojects.select(target_index)
        self.dirty = True
        return True

    def resize_focus(self, delta: int) -> int:
        previous = self.focused_width_percent
        self.focused_width_percent = max(0, self.focused_width_percent + delta)
        width = self.bind_focus_width()
        if width != previous:
            self.dirty = True
        return width

    def bind_focus_width(self) -> int:
        """Clamp the focused column width to what the subprojects allow."""
        count = max(len(self.subprojects), 1)
        min_width = max(100 // count, MIN_WIDTH_PERCENT)
        self.focused_width_percent = max(min(self.focused_width_percent, MAX_WIDTH_PERCENT), min_width)
        return self.focused_width_percent

    def toggle_split(self) -> None:
        self.split_vertical = not self.split_vertical
        self.dirty = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "password": self.password,
            "subprojects": self.subprojects.to_dict(SubProject.to_dict),
            "focused_width_percent": self.focused_width_percent,
            "split_vertical": self.split_vertical,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        data = _require_dict(data, "project")
        width = data.get("focused_width_percent", DEFAULT_WIDTH_PERCENT)
        if not isinstance(width, int) or isinstance(width, bool):
            raise TypeError("focused_width_percent must be an integer")
        return cls(
            name=_require_str(data, "name"),
            password=_require_str(data, "password"),
            subprojects=SelectionList.from_dict(data["subprojects"], SubProject.from_dict),
            focused_width_percent=width,
            split_vertical=bool(data.get("split_vertical", False)),
        )


@dataclass
class Journal:
    """Top-level persisted unit: a named, password protected set of projects."""

    name: str = DEFAULT_JOURNAL_NAME
    password: str = ""
    projects: SelectionList[Project] = field(default_factory=SelectionList)
    dirty: bool = field(default=False, compare=False, repr=False)

    @classmethod
    def default(cls) -> "Journal":
        projects = SelectionList([Project.default()])
        projects.select_next()
        return cls(projects=projects)

    @classmethod
    def from_project(cls, project: Project) -> "Journal":
        """Wrap a standalone project file's contents in a journal."""
        return cls(
            name=project.name,
            password=project.password,
            projects=SelectionList([project]),
        )

    def __add__(self, other: "Journal") -> "Journal":
        if not isinstance(other, Journal):
            return NotImplemented
        return Journal(
            name=self.name,
            password=self.password,
            projects=self.projects + other.projects,
        )

    def __str__(self) -> str:
        return self.name

    def project(self) -> Optional[Project]:
        return self.projects.get_item()

    def subproject(self) -> Optional[SubProject]:
        project = self.project()
        return project.subproject() if project is not None else None

    def task(self) -> Optional[Task]:
        subproject = self.subproject()
        return subproject.task() if subproject is not None else None

    def rename(self, name: str) -> None:
        self.name = name
        self.dirty = True

    def set_password(self, password: str) -> None:
        self.password = password
        self.dirty = True

    def add_project(self, name: str) -> Project:
        project = Project(name=name)
        self.projects.add_item(project, select=True)
        self.dirty = True
        return project

    def delete_project(self) -> Optional[Project]:
        removed = self.projects.pop_selected()
        if removed is not None:
            self.dirty = True
        return removed

    def is_dirty(self) -> bool:
        return self.dirty or any(project.dirty for project in self.projects)

    def mark_clean(self) -> None:
        self.dirty = False
        for project in self.projects:
            project.dirty = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "password": self.password,
            "projects": self.projects.to_dict(Project.to_dict),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Journal":
        data = _require_dict(data, "journal")
        return cls(
            name=_require_str(data, "name"),
            password=_require_str(data, "password"),
            projects=SelectionList.from_dict(data["projects"], Project.from_dict),
        )
