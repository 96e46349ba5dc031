"""End-to-end tests: publish with create, install with fetch, then upgrade.

The publishing side uses Repo.create exactly as a maintainer would; the
resulting files are served by an in-memory mirror to a separate client.
"""

import pytest

from tarpkg.repos.repo import Repo
from tarpkg.upgrade.planner import UpgradePlanner

from tests.factories import MIRROR_A, MIRROR_B, TARGET, descriptor, manifest, write_tree


def publish_with_create(repo: Repo, server, source, name, mirror=MIRROR_B):
    """Create a package from ``source`` and serve its .tar/.sig as ``name``."""
    tar_path = repo.create(str(source))
    sig_path = tar_path.with_suffix(".sig")
    server.put(mirror, f"{name}.tar", tar_path.read_bytes())
    server.put(mirror, f"{name}.sig", sig_path.read_bytes())


class TestPackagePipeline:
    """Full create -> fetch -> install -> upgrade cycle."""

    @pytest.fixture
    def root(self, tmp_path):
        """Install root with an installed-package directory."""
        root = tmp_path / "root"
        (root / "pkg").mkdir(parents=True)
        return root

    def test_install_then_upgrade(self, tmp_path, repo, mirror_server, root):
        """Test a package installed at 1.0.0 is upgraded to 1.2.0 from the fallback mirror."""
        mirror_server.unreachable.add("a.example.org")

        v1 = write_tree(
            tmp_path / "src-1.0.0" / "hello",
            {"bin/hello": "v1", "pkg/hello.toml": descriptor("hello", "1.0.0")},
        )
        publish_with_create(repo, mirror_server, v1, "hello")

        repo.fetch("hello").install(root)
        assert (root / "bin" / "hello").read_text() == "v1"

        v2 = write_tree(
            tmp_path / "src-1.2.0" / "hello",
            {"bin/hello": "v2", "pkg/hello.toml": descriptor("hello", "1.2.0")},
        )
        publish_with_create(repo, mirror_server, v2, "hello")
        mirror_server.put(MIRROR_B, "repo.toml", manifest({"hello": "1.2.0"}))

        lines = []
        planner = UpgradePlanner(
            repo,
            installed_dir=root / "pkg",
            install_root=root,
            prompt=lambda text: "yes",
            output=lines.append,
        )
        plan = planner.run()

        assert [(c.name, c.old_version, c.new_version) for c in plan.upgrades] == [
            ("hello", "1.0.0", "1.2.0")
        ]
        assert (root / "bin" / "hello").read_text() == "v2"
        assert (root / "pkg" / "hello.toml").read_text() == descriptor("hello", "1.2.0")

        # A second run finds nothing to do
        lines.clear()
        assert planner.run().is_up_to_date
        assert lines == ["All packages are up to date."]

    def test_cached_package_survives_mirror_outage(self, tmp_path, repo, mirror_server):
        """Test a verified cache entry is reused when only the signature is reachable."""
        source = write_tree(tmp_path / "src" / "tool", {"bin/tool": "t"})
        publish_with_create(repo, mirror_server, source, "tool", mirror=MIRROR_A)
        repo.fetch("tool").close()

        del mirror_server.files[f"{MIRROR_A}/{TARGET}/tool.tar"]
        names = repo.fetch("tool").list()

        assert names == ["bin", "bin/tool"]
        assert len(mirror_server.requested("tool.tar")) == 1
