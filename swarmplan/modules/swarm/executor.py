"""Executors run commands on inventory hosts through Ansible."""
import logging
import os
import tempfile
from typing import Optional

import ansible_runner

logger = logging.getLogger("swarmplan.executor")


class AnsibleExecutor:
    """Runs ad-hoc modules through ansible-runner against a rendered inventory."""

    def __init__(self, inventory_path: str, private_data_dir: Optional[str] = None, timeout: int = None):
        self.inventory_path = os.path.abspath(os.path.expanduser(inventory_path))
        self.private_data_dir = private_data_dir or tempfile.mkdtemp(prefix="swarmplan-")
        self.timeout = timeout

    def run(self, host: str, command: str) -> str:
        """Run a shell command on host and return its stdout.

        Raises:
            RuntimeError: If ansible reports anything but success
        """
        logger.debug(f"Running shell command on {host}")
        runner = self._run_module(host, 'shell', command)
        for event in runner.events:
            if event.get('event') == 'runner_on_ok':
                return event.get('event_data', {}).get('res', {}).get('stdout', '')
        return ''

    def ping(self, host: str) -> None:
        """Check that host is reachable over SSH (ansible's ping module)."""
        logger.debug(f"Pinging {host}")
        self._run_module(host, 'ping')

    def _run_module(self, host: str, module: str, module_args: str = None):
        runner = ansible_runner.run(
            private_data_dir=self.private_data_dir,
            inventory=self.inventory_path,
            host_pattern=host,
            module=module,
            module_args=module_args,
            quiet=True,
            timeout=self.timeout,
        )
        if runner.status != 'successful' or runner.rc != 0:
            raise RuntimeError(
                f"{module} failed on {host} (status={runner.status}, rc={runner.rc}): "
                f"{self._last_error(runner)}"
            )
        return runner

    @staticmethod
    def _last_error(runner) -> str:
        message = ''
        for event in runner.events:
            if event.get('event') in ('runner_on_failed', 'runner_on_unreachable'):
                res = event.get('event_data', {}).get('res', {})
                message = res.get('stderr') or res.get('msg') or message
        return message
