"""
Integration tests for treesync CLI behavior and project configuration.

Tests:
  - .treesync discovery: searching parent directories upward
  - config loading: get_profile / profile_from_dict resolve a Profile
  - treesync init: creates a valid .treesync YAML, refuses overwrite without --force
  - treesync snapshot / status / sync against local directories
"""
import hashlib
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path, PurePosixPath

REPO_ROOT = Path(__file__).parent.parent


def run_treesync(*args, cwd=None, env_extra=None):
    """Run the treesync CLI and return (returncode, stdout, stderr)."""
    result = subprocess.run(
        [sys.executable, "-m", "treesync", *args],
        cwd=str(cwd or REPO_ROOT),
        capture_output=True,
        text=True,
        input="",
        env={**os.environ, "PYTHONPATH": str(REPO_ROOT), **(env_extra or {})},
    )
    return result.returncode, result.stdout, result.stderr


# ── Tests: .treesync discovery ────────────────────────────────────────────────

class TestFindProjectFile(unittest.TestCase):
    """Tests for find_project_file() — upward search through parent directories."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name).resolve()

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_find_in_same_directory(self):
        from treesync.config import find_project_file
        (self.root / ".treesync").write_text("profiles: []\n", encoding="utf-8")
        self.assertEqual(find_project_file(self.root), self.root / ".treesync")

    def test_find_in_parent_directory(self):
        from treesync.config import find_project_file
        (self.root / ".treesync").write_text("profiles: []\n", encoding="utf-8")
        subdir = self.root / "a" / "b" / "c"
        subdir.mkdir(parents=True)
        self.assertEqual(find_project_file(subdir), self.root / ".treesync")

    def test_finds_nearest_project_file(self):
        """The deepest .treesync wins."""
        from treesync.config import find_project_file
        (self.root / ".treesync").write_text("profiles: []\n", encoding="utf-8")
        sub_a = self.root / "a"
        sub_a.mkdir()
        (sub_a / ".treesync").write_text("profiles: []\n", encoding="utf-8")
        deep = sub_a / "b" / "c"
        deep.mkdir(parents=True)
        self.assertEqual(find_project_file(deep), sub_a / ".treesync")


# ── Tests: config loading ─────────────────────────────────────────────────────

class TestLoadProfile(unittest.TestCase):
    """Tests for load_project_file, get_profile and profile_from_dict."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def _load(self, content, name="default"):
        from treesync import config as cfg
        p = self.root / ".treesync"
        p.write_text(content, encoding="utf-8")
        return cfg.get_profile(cfg.load_project_file(p), name)

    def test_profile_basic(self):
        from treesync.config import profile_from_dict
        profile = profile_from_dict(self._load(
            "profiles:\n"
            "  - name: default\n"
            "    server: myhost.example.com\n"
            "    port: 2222\n"
            "    local_root: /tmp/local\n"
            "    remote_root: /remote/path\n"
        ))
        self.assertEqual(profile.server, "myhost.example.com")
        self.assertEqual(profile.port, 2222)
        self.assertEqual(profile.remote_root, PurePosixPath("/remote/path"))
        self.assertEqual(profile.transport, "paramiko")
        self.assertEqual(profile.hash_command, "sha256sum")
        self.assertEqual(profile.user_at_host, "root@myhost.example.com")

    def test_profile_with_base_remote(self):
        from treesync.config import profile_from_dict
        profile = profile_from_dict(self._load(
            "profiles:\n"
            "  - name: default\n"
            "    server: host\n"
            "    remote_root: projects/myrepo\n"
            "defaults:\n"
            "  base_remote: /home/user\n"
        ))
        self.assertEqual(profile.remote_root, PurePosixPath("/home/user/projects/myrepo"))

    def test_get_profile_by_name(self):
        data = self._load(
            "profiles:\n"
            "  - name: dev\n"
            "    server: dev.example.com\n"
            "  - name: prod\n"
            "    server: prod.example.com\n"
            "    port: 2222\n",
            name="prod",
        )
        self.assertEqual(data["server"], "prod.example.com")
        self.assertEqual(data["port"], 2222)

    def test_get_profile_falls_back_to_first(self):
        data = self._load(
            "profiles:\n"
            "  - name: only\n"
            "    server: only.example.com\n",
            name="nonexistent",
        )
        self.assertEqual(data["server"], "only.example.com")

    def test_external_transport_programs(self):
        from treesync.config import profile_from_dict
        profile = profile_from_dict({
            "server": "h", "transport": "external",
            "ssh_program": "plink -pw secret", "scp_program": ["pscp", "-pw", "secret"],
        })
        self.assertEqual(profile.ssh_program, ["plink", "-pw", "secret"])
        self.assertEqual(profile.scp_program, ["pscp", "-pw", "secret"])

    def test_default_cache_files_differ_per_role(self):
        from treesync.config import profile_from_dict
        profile = profile_from_dict({"server": "h", "remote_root": "/r"})
        self.assertNotEqual(profile.local_cache, profile.remote_cache)
        self.assertTrue(profile.local_cache.name.endswith(".local.content.txt"))

    def test_invalid_profiles_raise(self):
        from treesync.config import profile_from_dict
        from treesync.errors import ConfigError
        with self.assertRaises(ConfigError):
            profile_from_dict({"remote_root": "/r"})
        with self.assertRaises(ConfigError):
            profile_from_dict({"server": "h", "transport": "ftp"})

    def test_non_mapping_file_raises(self):
        from treesync.config import load_project_file
        from treesync.errors import ConfigError
        p = self.root / ".treesync"
        p.write_text("- just\n- a list\n", encoding="utf-8")
        with self.assertRaises(ConfigError):
            load_project_file(p)


# ── Tests: treesync init ──────────────────────────────────────────────────────

class TestInitCommand(unittest.TestCase):
    """Tests for the 'treesync init' subcommand."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.cwd = Path(self.tmpdir.name)
        self.env = {"XDG_CONFIG_HOME": str(self.cwd / "xdg-config")}

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_init_creates_project_file(self):
        rc, out, err = run_treesync(
            "init",
            "--server", "myhost.com",
            "--port", "22",
            "--remote", "projects/test",
            "--base-remote", "/home/user",
            cwd=self.cwd, env_extra=self.env,
        )
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        content = (self.cwd / ".treesync").read_text(encoding="utf-8")
        self.assertIn("myhost.com", content)
        self.assertIn("projects/test", content)
        self.assertIn("/home/user", content)

    def test_init_refuses_overwrite(self):
        (self.cwd / ".treesync").write_text("profiles: []\n", encoding="utf-8")
        rc, out, err = run_treesync(
            "init", "--server", "myhost.com", "--remote", "projects/test",
            cwd=self.cwd, env_extra=self.env,
        )
        self.assertNotEqual(rc, 0)
        self.assertIn("already exists", err)

    def test_init_force_overwrites(self):
        (self.cwd / ".treesync").write_text("profiles: []\n", encoding="utf-8")
        rc, out, err = run_treesync(
            "init", "--server", "newhost.com", "--remote", "projects/new", "--force",
            cwd=self.cwd, env_extra=self.env,
        )
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertIn("newhost.com", (self.cwd / ".treesync").read_text(encoding="utf-8"))

    def test_init_dry_run_does_not_write(self):
        rc, out, err = run_treesync(
            "init", "--server", "myhost.com", "--remote", "projects/test", "--dry-run",
            cwd=self.cwd, env_extra=self.env,
        )
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertFalse((self.cwd / ".treesync").exists())
        self.assertIn("dry-run", out)

    def test_init_creates_loadable_profile(self):
        rc, out, err = run_treesync(
            "init", "--server", "myhost.com", "--port", "2222",
            "--remote", "/absolute/remote", "--hash-command", "sha256",
            cwd=self.cwd, env_extra=self.env,
        )
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        from treesync import config as cfg
        data = cfg.load_project_file(self.cwd / ".treesync")
        profile = cfg.profile_from_dict(cfg.get_profile(data))
        self.assertEqual(profile.server, "myhost.com")
        self.assertEqual(profile.port, 2222)
        self.assertEqual(profile.remote_root, PurePosixPath("/absolute/remote"))
        self.assertEqual(profile.hash_command, "sha256")


# ── Tests: snapshot / status / sync ───────────────────────────────────────────

class TestLocalCommands(unittest.TestCase):
    """'treesync snapshot', 'status' and 'sync' with a local destination."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        tmp = Path(self.tmpdir.name)
        self.src = tmp / "project"
        self.dst = tmp / "mirror"
        (self.src / "sub").mkdir(parents=True)
        self.dst.mkdir()
        (self.src / "top.txt").write_text("top", encoding="utf-8")
        (self.src / "sub" / "f.txt").write_text("inner", encoding="utf-8")
        (self.dst / "stale.txt").write_text("remove me", encoding="utf-8")
        self.env = {
            "XDG_CONFIG_HOME": str(tmp / "xdg-config"),
            "XDG_CACHE_HOME": str(tmp / "xdg-cache"),
        }

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write_project(self):
        dst_yaml = str(self.dst).replace("\\", "/")
        (self.src / ".treesync").write_text(
            "profiles:\n"
            "  - name: default\n"
            "    transport: local\n"
            f"    remote_root: '{dst_yaml}'\n",
            encoding="utf-8",
        )

    def test_snapshot_prints_records(self):
        rc, out, err = run_treesync("snapshot", str(self.src), env_extra=self.env)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        lines = out.splitlines()
        inner = hashlib.sha256(b"inner").hexdigest()
        self.assertTrue(lines[0].startswith("T "))
        self.assertIn("D sub/", lines)
        self.assertIn(f"F {inner} sub/f.txt", lines)
        self.assertNotIn("[scan]", out)

    def test_snapshot_to_file(self):
        target = self.dst / "snap.txt"
        rc, out, err = run_treesync("snapshot", str(self.src), "-o", str(target), env_extra=self.env)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        from treesync.state.snapshot_codec import SnapshotCodec
        tree = SnapshotCodec().read(target)
        self.assertEqual(tree.file_hashes()["top.txt"], hashlib.sha256(b"top").hexdigest())

    def test_status_without_caches(self):
        self._write_project()
        rc, out, err = run_treesync("status", cwd=self.src, env_extra=self.env)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertIn("Transport    : local", out)
        self.assertIn("not yet written", out)

    def test_sync_dry_run_then_real(self):
        self._write_project()
        rc, out, err = run_treesync("sync", "-n", cwd=self.src / "sub", env_extra=self.env)
        self.assertEqual(rc, 0, msg=f"stderr: {err}\nstdout: {out}")
        self.assertIn("DRY-RUN", out)
        self.assertTrue((self.dst / "stale.txt").exists())
        self.assertFalse((self.dst / "top.txt").exists())

        rc, out, err = run_treesync("sync", cwd=self.src, env_extra=self.env)
        self.assertEqual(rc, 0, msg=f"stderr: {err}\nstdout: {out}")
        self.assertFalse((self.dst / "stale.txt").exists())
        self.assertEqual((self.dst / "sub" / "f.txt").read_text(encoding="utf-8"), "inner")
        self.assertIn("SUMMARY", out)

    def test_sync_without_project_file_fails(self):
        rc, out, err = run_treesync("sync", cwd=self.dst, env_extra=self.env)
        self.assertEqual(rc, 1)
        self.assertIn("no .treesync file found", err)


if __name__ == "__main__":
    unittest.main()
