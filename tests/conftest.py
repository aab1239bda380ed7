"""
Shared fixtures for dep-notation tests.
"""

import pytest

from dep_notation.cli_config import reset_config
from dep_notation.component_dependencies import ComponentDependencies
from dep_notation.error_handling import setup_error_handling
from dep_notation.project import Project

SAMPLE_DECLARATIONS_TOML = """
[project]
name = "app"

[[projects]]
name = "core"

[libraries]
guava = "com.google.guava:guava:32.1.2-jre"
junit = "org.junit.jupiter:junit-jupiter:5.10.0"
assertj = "org.assertj:assertj-core:3.24.2"

[bundles]
testing = ["junit", "assertj"]

[dependencies]
implementation = [
    "org.slf4j:slf4j-api:2.0.9",
    { library = "guava", because = "immutable collections" },
    { project = "core" },
]
runtimeOnly = [
    { module = "ch.qos.logback:logback-classic:1.4.11", lazy = true },
]
compileOnly = [
    { bundle = "testing" },
    { project = "core", test_fixtures = true },
]
annotationProcessor = [
    { classpath = "gradleApi" },
]
"""


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep config discovery and the global error handler away from the real machine."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in [
        "DEP_NOTATION_TEST_FIXTURES_SUFFIX",
        "DEP_NOTATION_ALLOW_STRING_NOTATION",
        "DEP_NOTATION_ALLOW_MAP_NOTATION",
        "DEP_NOTATION_LOG_LEVEL",
    ]:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    setup_error_handling()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    return tmp_path


@pytest.fixture
def project():
    root = Project("app")
    root.create_child("core")
    return root


@pytest.fixture
def core_project(project):
    return project.find_project(":core")


@pytest.fixture
def deps(project):
    return ComponentDependencies.for_project(project)


@pytest.fixture
def implementation(project):
    return project.configurations["implementation"]


@pytest.fixture
def sample_declarations_toml(temp_dir):
    path = temp_dir / "dependencies.toml"
    path.write_text(SAMPLE_DECLARATIONS_TOML)
    return path
