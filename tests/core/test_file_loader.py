# SPDX-License-Identifier: Apache-2.0
"""
File loader: raw contents or a reported failure, never an exception for
ordinary filesystem problems.
"""
import os

import pytest

from hello_graph.core.config import DEFAULT_SAMPLE_DIR
from hello_graph.core.file_loader import LoadResult, load_file

pytestmark = pytest.mark.asyncio


async def test_load_file_returns_raw_bytes(tmp_path):
    path = tmp_path / "schema.json"
    path.write_bytes(b'{"vertexLabels": []}')

    res = await load_file(path)
    assert isinstance(res, LoadResult)
    assert res.ok
    assert res.content == b'{"vertexLabels": []}'
    assert res.path == str(path)
    assert res.reason is None and res.error is None
    assert res.text() == '{"vertexLabels": []}'


async def test_load_file_missing_file_reports_not_found(tmp_path):
    path = tmp_path / "nope.json"

    res = await load_file(path)
    assert not res.ok
    assert res.content is None
    assert res.reason == "not_found"
    assert str(path) in res.error


async def test_load_file_directory_reports_is_directory(tmp_path):
    res = await load_file(tmp_path)
    assert not res.ok
    assert res.reason == "is_directory"


@pytest.mark.skipif(not hasattr(os, "geteuid") or os.geteuid() == 0, reason="root ignores file modes")
async def test_load_file_unreadable_reports_permission_denied(tmp_path):
    path = tmp_path / "locked.json"
    path.write_text("{}")
    path.chmod(0)
    try:
        res = await load_file(path)
    finally:
        path.chmod(0o600)
    assert not res.ok
    assert res.reason == "permission_denied"


async def test_load_file_empty_file_is_success(tmp_path):
    path = tmp_path / "empty.json"
    path.write_bytes(b"")

    res = await load_file(path)
    assert res.ok
    assert res.content == b""


async def test_packaged_sample_files_are_loadable():
    for name in ("nxnw_schema.json", "nxnw_dataset.json"):
        res = await load_file(os.path.join(DEFAULT_SAMPLE_DIR, name))
        assert res.ok, res.error
        assert res.content.strip().startswith(b"{")


async def test_text_on_failed_load_raises():
    res = LoadResult(path="/x", reason="not_found", error="No such file or directory: /x")
    with pytest.raises(ValueError):
        res.text()
