"""Ctrl+C handling for worker threads and child process trees.

A KeyboardInterrupt is only delivered to the main thread. Compile workers that
observe one (e.g. while a compiler is being torn down) must forward it with
_thread.interrupt_main() so the whole pipeline aborts, and every compiler that
is still running must be terminated so it cannot finish writing an object file
after embargo has exited.
"""

import _thread
import logging
from typing import NoReturn

import psutil

logger = logging.getLogger(__name__)

_TERMINATE_TIMEOUT = 3.0


def handle_keyboard_interrupt_properly(ke: KeyboardInterrupt) -> NoReturn:
    """Forward a KeyboardInterrupt caught in a worker thread to the main thread.

    Args:
        ke: The interrupt that was caught

    Raises:
        KeyboardInterrupt: Always re-raised after notifying the main thread
    """
    logger.debug("Forwarding KeyboardInterrupt to main thread")
    _thread.interrupt_main()
    raise ke


def terminate_process_tree(pid: int, timeout: float = _TERMINATE_TIMEOUT) -> int:
    """Terminate a process and all of its descendants.

    Children are terminated before their parent so none are re-parented
    and left running. Processes still alive after `timeout` are killed.

    Args:
        pid: Root process id
        timeout: Seconds to wait for graceful termination

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(pid)
        processes = root.children(recursive=True)
        processes.reverse()
        processes.append(root)
    except psutil.NoSuchProcess:
        logger.debug(f"Process {pid} already exited")
        return 0

    signalled: list[psutil.Process] = []
    for proc in processes:
        try:
            proc.terminate()
            signalled.append(proc)
        except psutil.NoSuchProcess:
            continue

    _gone, alive = psutil.wait_procs(signalled, timeout=timeout)
    for proc in alive:
        try:
            proc.kill()
            logger.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            continue

    logger.debug(f"Terminated process tree rooted at {pid} ({len(signalled)} processes)")
    return len(signalled)


def terminate_child_processes(timeout: float = _TERMINATE_TIMEOUT) -> int:
    """Terminate every descendant of the current process (not the process itself).

    Used when the main thread is interrupted while worker threads are
    blocked on compilers.

    Returns:
        Number of direct children whose trees were terminated
    """
    children = psutil.Process().children(recursive=False)
    for child in children:
        terminate_process_tree(child.pid, timeout=timeout)
    return len(children)
