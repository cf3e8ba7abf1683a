import os
from unittest.mock import patch
from flare_agent.core.permissions import PERMISSIONS_FILENAME, PermissionsTracker


def _records(content: str):
    lines = content.splitlines()
    # header + separator, then one line per path
    return lines[2:]


def test_add_is_idempotent(tmp_path):
    f = tmp_path / "conf.yaml"
    f.write_text("a: 1\n")
    perms = PermissionsTracker()
    perms.add(str(f))
    perms.add(str(f))
    perms.add(os.path.join(str(tmp_path), ".", "conf.yaml"))
    assert len(perms) == 1
    assert str(f) in perms


def test_add_records_mode(tmp_path):
    f = tmp_path / "secret.yaml"
    f.write_text("a: 1\n")
    os.chmod(f, 0o640)
    perms = PermissionsTracker()
    perms.add(str(f))
    info = dict(perms.items())[str(f)]
    assert info.mode == "-rw-r-----"
    assert info.owner
    assert info.group


def test_missing_path_is_ignored(tmp_path):
    perms = PermissionsTracker()
    perms.add(str(tmp_path / "does-not-exist"))
    assert len(perms) == 0


def test_unknown_owner_falls_back_to_numeric_id(tmp_path):
    f = tmp_path / "file"
    f.write_text("x")
    perms = PermissionsTracker()
    with patch("flare_agent.core.permissions.pwd.getpwuid", side_effect=KeyError("uid")), \
         patch("flare_agent.core.permissions.grp.getgrgid", side_effect=KeyError("gid")):
        perms.add(str(f))
    info = dict(perms.items())[str(f)]
    st = os.stat(f)
    assert info.owner == str(st.st_uid)
    assert info.group == str(st.st_gid)


def test_add_parent_chain_reaches_root(tmp_path):
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    f = nested / "agent.log"
    f.write_text("x")
    perms = PermissionsTracker()
    perms.add_parent_chain(str(f))

    assert str(f) not in perms
    assert str(nested) in perms
    assert str(tmp_path / "a") in perms
    assert str(tmp_path) in perms
    assert os.path.abspath(os.sep) in perms


def test_commit_one_record_per_unique_path(tmp_path):
    files = []
    for name in ("one.yaml", "two.yaml", "three.log"):
        p = tmp_path / name
        p.write_text(name)
        files.append(str(p))

    perms = PermissionsTracker()
    for f in files + files:
        perms.add(f)

    workspace = tmp_path / "ws"
    perms.commit(str(workspace), "host")
    content = (workspace / "host" / PERMISSIONS_FILENAME).read_text()
    records = _records(content)
    assert len(records) == len(set(files))
    for f in files:
        assert len([r for r in records if r.startswith(f + " ")]) == 1


def test_commit_empty_tracker_writes_empty_file(tmp_path):
    PermissionsTracker().commit(str(tmp_path), "host")
    target = tmp_path / "host" / PERMISSIONS_FILENAME
    assert target.exists()
    assert target.read_text() == ""


def test_commit_scrubs_paths(tmp_path):
    secret_dir = tmp_path / "password: hunter2"
    secret_dir.mkdir()
    f = secret_dir / "conf.yaml"
    f.write_text("x")
    perms = PermissionsTracker()
    perms.add(str(f))
    perms.commit(str(tmp_path / "ws"), "host")
    content = (tmp_path / "ws" / "host" / PERMISSIONS_FILENAME).read_text()
    assert "hunter2" not in content
