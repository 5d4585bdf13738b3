"""
Tests for project context detection and the boost multiplier.
"""
import os
import sys
import tempfile
import shutil

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from aethr.core.types import ProjectContext
from aethr.retrieval.context_detector import boost_multiplier, detect_project_context


def _touch(directory, name, content=""):
    path = os.path.join(directory, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return path


def test_detects_node_docker_kubernetes():
    tmp = tempfile.mkdtemp(prefix="aethr_ctx_")
    try:
        _touch(tmp, "package.json", "{}")
        _touch(tmp, "Dockerfile", "FROM alpine")
        _touch(tmp, "deploy.yaml", "apiVersion: apps/v1\nkind: Deployment\n")
        ctx = detect_project_context(tmp)
        assert {"nodejs", "docker", "kubernetes"} <= set(ctx.tags)
        print("  PASS: detects_node_docker_kubernetes")
    finally:
        shutil.rmtree(tmp)


def test_detects_each_marker():
    cases = [
        ("docker-compose.yml", "docker-compose"),
        ("docker-compose.yaml", "docker-compose"),
        ("pyproject.toml", "python"),
        ("requirements.txt", "python"),
        ("go.mod", "golang"),
        ("Cargo.toml", "rust"),
        ("pom.xml", "java"),
    ]
    for name, tag in cases:
        tmp = tempfile.mkdtemp(prefix="aethr_ctx_")
        try:
            _touch(tmp, name)
            assert tag in detect_project_context(tmp).tags, name
        finally:
            shutil.rmtree(tmp)
    print("  PASS: detects_each_marker")


def test_detects_git_directory():
    tmp = tempfile.mkdtemp(prefix="aethr_ctx_")
    try:
        os.mkdir(os.path.join(tmp, ".git"))
        assert detect_project_context(tmp).tags == frozenset({"git"})
        print("  PASS: detects_git_directory")
    finally:
        shutil.rmtree(tmp)


def test_plain_yaml_is_not_kubernetes():
    tmp = tempfile.mkdtemp(prefix="aethr_ctx_")
    try:
        _touch(tmp, "config.yml", "debug: true\nport: 8080\n")
        assert "kubernetes" not in detect_project_context(tmp).tags
        print("  PASS: plain_yaml_is_not_kubernetes")
    finally:
        shutil.rmtree(tmp)


def test_missing_directory_is_empty_context():
    ctx = detect_project_context(os.path.join(tempfile.gettempdir(), "aethr-does-not-exist-xyz"))
    assert ctx == ProjectContext()
    assert not ctx
    print("  PASS: missing_directory_is_empty")


def test_empty_directory_is_empty_context():
    tmp = tempfile.mkdtemp(prefix="aethr_ctx_")
    try:
        assert not detect_project_context(tmp)
    finally:
        shutil.rmtree(tmp)
    print("  PASS: empty_directory_is_empty")


# ─── Boost ───────────────────────────────────────────────────────────────────

def test_boost_no_context_is_neutral():
    assert boost_multiplier(ProjectContext(), "npm install") == 1.0
    print("  PASS: boost_no_context")


def test_boost_single_match():
    ctx = ProjectContext.from_tags(["nodejs"])
    assert boost_multiplier(ctx, "npm install express") == 2.5
    assert boost_multiplier(ctx, "NPM run build") == 2.5
    assert boost_multiplier(ctx, "ls -la") == 1.0
    print("  PASS: boost_single_match")


def test_boost_git_is_two():
    ctx = ProjectContext.from_tags(["git"])
    assert boost_multiplier(ctx, "git status") == 2.0
    print("  PASS: boost_git")


def test_boost_stacks_across_groups():
    ctx = ProjectContext.from_tags(["git", "docker"])
    assert boost_multiplier(ctx, "git clone x && docker build .") == 5.0
    print("  PASS: boost_stacks_across_groups")


def test_boost_docker_group_counts_once():
    ctx = ProjectContext.from_tags(["docker", "docker-compose"])
    assert boost_multiplier(ctx, "docker-compose up -d") == 2.5
    print("  PASS: boost_docker_group_counts_once")


def test_boost_golang_needs_go_word():
    ctx = ProjectContext.from_tags(["golang"])
    assert boost_multiplier(ctx, "go build ./...") == 2.5
    assert boost_multiplier(ctx, "mongod") == 1.0
    print("  PASS: boost_golang")
