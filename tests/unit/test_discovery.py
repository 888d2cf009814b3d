"""Tests for session discovery."""

from cc_grep.discovery import discover_sessions, extract_project_name, project_labels


def test_extract_project_name():
    assert extract_project_name("-Users-john-Code-myapp") == "myapp"
    assert extract_project_name("-home-dev-work-api") == "api"
    assert extract_project_name("-root") == "-root"
    assert extract_project_name("plain") == "plain"


def test_discover_sessions(sample_corpus, corpus):
    files = discover_sessions(corpus)

    assert len(files) == 3
    assert {f.project for f in files} == {"alpha", "beta"}
    sizes = [f.size_bytes for f in files]
    assert sizes == sorted(sizes, reverse=True)
    for f in files:
        assert f.path.stat().st_size == f.size_bytes
        assert f.session_id == f.path.stem


def test_discover_nested_and_stray_files(corpus):
    nested = corpus / "-Users-dev-Code-gamma" / "subagents"
    nested.mkdir(parents=True)
    (nested / "agent-1.jsonl").write_text("{}\n")
    (corpus / "stray.jsonl").write_text("{}\n")
    (corpus / "-Users-dev-Code-gamma" / "notes.txt").write_text("ignore me")

    files = discover_sessions(corpus)

    assert [f.session_id for f in files] == ["agent-1"]
    assert files[0].project_dir == "-Users-dev-Code-gamma"
    assert files[0].project == "gamma"


def test_discover_missing_root(temp_dir):
    assert discover_sessions(temp_dir / "nope") == []


def test_project_labels_disambiguate_shared_names():
    labels = project_labels(
        {
            "-Users-alice-work-api": "api",
            "-Users-alice-personal-api": "api",
            "-Users-alice-Code-web": "web",
        }
    )
    assert labels == {
        "-Users-alice-work-api": "-Users-alice-work-api",
        "-Users-alice-personal-api": "-Users-alice-personal-api",
        "-Users-alice-Code-web": "web",
    }
