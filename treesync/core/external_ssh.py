"""
SSH/SCP through external programs (ssh/scp, or plink/pscp on Windows)
"""
import posixpath
import shlex
from pathlib import Path

from .shell import CommandResult, run_command
from ..config import Profile
from ..utils.logging import vlog


class ExternalSshScp:
    """
    Same interface as SSHManager, but every operation runs a client program,
    e.g. ``ssh_program=["plink", "-pw", "secret"]`` and ``scp_program=["pscp"]``.
    """

    def __init__(self, profile: Profile):
        self.profile = profile
        self.shell = list(profile.ssh_program)
        self.scp_program = list(profile.scp_program)

    @property
    def user_at_host(self) -> str:
        return self.profile.user_at_host

    def _port_args(self, flag: str) -> list:
        if self.profile.port == 22:
            return []
        return [flag, str(self.profile.port)]

    def exec(self, cmd: str) -> CommandResult:
        argv = self.shell + self._port_args("-p") + [self.user_at_host, cmd]
        return run_command(argv, description=f"SSH {self.user_at_host}: {cmd}")

    def upload(self, local_path: str, remote_dir: str, recursive: bool = False):
        target = posixpath.join(remote_dir, Path(local_path).name)
        argv = self.scp_program + self._port_args("-P")
        if recursive:
            argv.append("-r")
        # the remote path is expanded by the remote shell
        argv += [local_path, f"{self.user_at_host}:{shlex.quote(target)}"]
        vlog(f"  SCP: copy {local_path} to {self.user_at_host}:{target}")
        run_command(argv).check()

    def close(self):
        # nothing cached between commands
        pass
