"""
SSH connection manager with auto-reconnect and keep-alive
"""
import os
import posixpath
import stat
from pathlib import Path
from typing import Optional

import paramiko

from .shell import CommandResult
from ..config import Profile
from ..utils.logging import log, vlog
from ..utils.retry import retried


class SSHManager:
    """
    Wraps paramiko SSHClient + SFTPClient.
    Automatically reconnects on channel errors.
    Sends SSH keep-alives to reduce mid-transfer drops.
    """

    def __init__(self, profile: Profile):
        self.profile = profile
        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    @property
    def user_at_host(self) -> str:
        return self.profile.user_at_host

    # ── connection ─────────────────────────────────────────────────────────

    def connect(self):
        if self._ssh:
            try:
                self._ssh.get_transport().send_ignore()  # test if alive
                return
            except Exception:
                self._close_quietly()

        p = self.profile
        log(f"[SSH] connecting to {p.user}@{p.server}:{p.port} …")
        client = paramiko.SSHClient()
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        kw: dict = dict(hostname=p.server, port=p.port, username=p.user,
                        timeout=20, banner_timeout=30, auth_timeout=30)
        if p.ssh_key:
            kw["key_filename"] = p.ssh_key
        if p.ssh_password:
            kw["password"] = p.ssh_password

        client.connect(**kw)

        # Keep-alive: send a NOP every 30s
        transport = client.get_transport()
        transport.set_keepalive(30)

        self._ssh = client
        self._sftp = client.open_sftp()
        log("[SSH] connected ✓")

    def _close_quietly(self):
        if self._sftp:
            try:
                self._sftp.close()
            except (OSError, paramiko.SSHException):
                pass
        if self._ssh:
            self._ssh.close()
        self._ssh = None
        self._sftp = None

    def close(self):
        if self._ssh is not None:
            log(f"[SSH] closing connection to {self.user_at_host} …")
        self._close_quietly()

    def ensure_connected(self):
        """Call before any remote operation."""
        try:
            if self._ssh and self._ssh.get_transport().is_active():
                return
        except AttributeError:
            pass
        self.connect()

    # ── exec ───────────────────────────────────────────────────────────────

    @retried
    def exec(self, cmd: str) -> CommandResult:
        """Run a command to completion; the caller checks the result."""
        self.ensure_connected()
        description = f"SSH {self.user_at_host}: {cmd}"
        vlog(f"  {description}")
        _, stdout, stderr = self._ssh.exec_command(cmd)
        out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")
        rc = stdout.channel.recv_exit_status()
        return CommandResult(description, rc, out, err)

    # ── sftp ops ───────────────────────────────────────────────────────────

    @retried
    def _put(self, local: str, remote: str):
        self.ensure_connected()
        self._sftp.put(local, remote)

    @retried
    def _mkdir(self, remote: str):
        self.ensure_connected()
        try:
            if stat.S_ISDIR(self._sftp.stat(remote).st_mode):
                return
        except FileNotFoundError:
            pass
        self._sftp.mkdir(remote)

    def upload(self, local_path: str, remote_dir: str, recursive: bool = False):
        """
        Copy a local file, or with *recursive* a whole local directory, into
        *remote_dir* (which must exist), keeping its name.
        """
        name = Path(local_path).name
        target = posixpath.join(remote_dir, name)
        vlog(f"  SFTP: copy {local_path} to {self.user_at_host}:{target}")
        if not recursive:
            self._put(local_path, target)
            return
        self._mkdir(target)
        for dirpath, dirnames, filenames in os.walk(local_path):
            dirnames.sort()
            rel = os.path.relpath(dirpath, local_path)
            remote_base = target if rel == "." else posixpath.join(target, Path(rel).as_posix())
            for d in dirnames:
                self._mkdir(posixpath.join(remote_base, d))
            for f in sorted(filenames):
                self._put(os.path.join(dirpath, f), posixpath.join(remote_base, f))
