"""Tests for interrupt forwarding and process tree termination."""

import subprocess
import sys
from unittest.mock import patch

import psutil
import pytest

from embargo.interrupt_utils import (
    handle_keyboard_interrupt_properly,
    terminate_child_processes,
    terminate_process_tree,
)


def test_handle_keyboard_interrupt_notifies_main_thread():
    with patch("embargo.interrupt_utils._thread.interrupt_main") as mock_interrupt:
        with pytest.raises(KeyboardInterrupt):
            handle_keyboard_interrupt_properly(KeyboardInterrupt())

    mock_interrupt.assert_called_once()


def test_terminate_process_tree():
    proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
    try:
        assert terminate_process_tree(proc.pid, timeout=5) == 1
        assert proc.wait(timeout=5) != 0
    finally:
        if proc.poll() is None:
            proc.kill()


def test_terminate_process_tree_already_gone():
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    proc.wait()
    assert terminate_process_tree(proc.pid) == 0


def test_terminate_child_processes():
    fake_child = psutil.Process()
    with (
        patch("embargo.interrupt_utils.psutil.Process") as mock_process,
        patch("embargo.interrupt_utils.terminate_process_tree") as mock_terminate,
    ):
        mock_process.return_value.children.return_value = [fake_child]
        assert terminate_child_processes(timeout=1) == 1

    mock_terminate.assert_called_once_with(fake_child.pid, timeout=1)
