"""Tests for tasks — the containers that own threads."""

from py_osp.process.task import Task, TaskState
from py_osp.process.threads import Thread


class TestTask:
    """Verify thread attachment and task termination."""

    def test_new_task_is_empty(self) -> None:
        """A new task is live, with no threads and nothing on the CPU."""
        task = Task(name="shell")
        assert task.name == "shell"
        assert task.state is TaskState.LIVE
        assert task.thread_count == 0
        assert task.current_thread is None

    def test_ids_are_unique(self) -> None:
        """Each task gets its own id."""
        assert Task(name="a").task_id != Task(name="b").task_id

    def test_page_table_belongs_to_task(self) -> None:
        """The task's page table points back at the task."""
        task = Task(name="shell")
        assert task.page_table.task is task

    def test_add_and_remove_thread(self) -> None:
        """Threads are attached once and can be detached."""
        task = Task(name="shell")
        thread = Thread(tid=1, task=task)
        assert task.add_thread(thread) is True
        assert task.add_thread(thread) is False
        assert task.threads == [thread]
        task.remove_thread(thread)
        assert task.thread_count == 0

    def test_remove_current_thread_clears_it(self) -> None:
        """Detaching the thread on the CPU clears the current-thread slot."""
        task = Task(name="shell")
        thread = Thread(tid=1, task=task)
        task.add_thread(thread)
        task.current_thread = thread
        task.remove_thread(thread)
        assert task.current_thread is None

    def test_killed_task_refuses_threads(self) -> None:
        """A killed task cannot gain threads."""
        task = Task(name="shell")
        task.kill()
        assert task.add_thread(Thread(tid=1, task=task)) is False

    def test_kill_runs_callbacks_once(self) -> None:
        """Subscribers hear about the kill exactly once."""
        task = Task(name="shell")
        seen: list[Task] = []
        task.on_kill(seen.append)
        task.kill()
        task.kill()
        assert seen == [task]
        assert task.state is TaskState.KILLED

    def test_kill_drops_mappings(self) -> None:
        """A killed task's address space is emptied."""
        task = Task(name="shell")
        task.page_table.map(virtual_page=0, physical_frame=5)
        task.kill()
        assert len(task.page_table) == 0

    def test_repr(self) -> None:
        """The repr names the task."""
        task = Task(name="shell")
        assert "shell" in repr(task)
