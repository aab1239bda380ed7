"""
Integration tests for dep-notation.
Tests declarations files end to end and configuration discovery.
"""

import json

import pytest

from dep_notation.cli_config import (
    ComprehensiveConfig,
    create_sample_config,
    get_config,
    reset_config,
    validate_config_values,
)
from dep_notation.declarations import load_declarations
from dep_notation.dependency import Capability, ProjectTestFixtures
from dep_notation.error_handling import ErrorCategory, InvalidUserDataError, get_error_handler
from dep_notation.factory import DependencyFactory
from dep_notation.project import Project
from dep_notation.reporting import build_to_dict


def bucket_notations(build, name):
    return [str(dep) for dep in build.dependencies.bucket(name).dependencies]


class TestDeclarationsFile:
    """Test loading declarations files into buckets."""

    def test_sample_file_before_and_after_realization(self, sample_declarations_toml):
        build = load_declarations(str(sample_declarations_toml))

        assert build.entry_count == 7
        assert bucket_notations(build, "implementation") == [
            "org.slf4j:slf4j-api:2.0.9",
            "project ':core'",
        ]
        assert bucket_notations(build, "runtimeOnly") == []

        assert build.realize() == 2

        assert bucket_notations(build, "implementation") == [
            "org.slf4j:slf4j-api:2.0.9",
            "com.google.guava:guava:32.1.2-jre",
            "project ':core'",
        ]
        assert bucket_notations(build, "runtimeOnly") == [
            "ch.qos.logback:logback-classic:1.4.11"
        ]
        assert bucket_notations(build, "annotationProcessor") == ["gradleApi()"]

    def test_customizer_keys_are_applied(self, sample_declarations_toml):
        build = load_declarations(str(sample_declarations_toml))
        build.realize()

        guava = list(build.dependencies.bucket("implementation").dependencies)[1]
        assert guava.reason == "immutable collections"

        core = build.project.find_project("core")
        fixtures = list(build.dependencies.bucket("compileOnly").dependencies)[-1]
        assert fixtures.requested_capabilities == [ProjectTestFixtures(core)]

    def test_bundle_in_declarations_file(self, sample_declarations_toml):
        build = load_declarations(str(sample_declarations_toml))

        assert bucket_notations(build, "compileOnly")[:2] == [
            "org.junit.jupiter:junit-jupiter:5.10.0",
            "org.assertj:assertj-core:3.24.2",
        ]

    def test_json_declarations(self, temp_dir):
        path = temp_dir / "dependencies.json"
        path.write_text(
            json.dumps(
                {
                    "dependencies": {
                        "implementation": [
                            {
                                "module": "com.acme:billing:2.1",
                                "test_fixtures": True,
                                "exclude": {"group": "commons-logging"},
                                "transitive": False,
                            },
                            {"module": "com.acme:ledger:1.0", "capabilities": ["com.acme:ledger-api"]},
                        ]
                    }
                }
            )
        )

        build = load_declarations(str(path))
        billing, ledger = build.dependencies.bucket("implementation").dependencies

        assert billing.requested_capabilities == [
            Capability("com.acme", "billing-test-fixtures", None)
        ]
        assert billing.excludes[0].group == "commons-logging"
        assert billing.transitive is False
        assert ledger.requested_capabilities == [Capability("com.acme", "ledger-api", None)]

    def test_yaml_declarations(self, temp_dir):
        path = temp_dir / "dependencies.yaml"
        path.write_text(
            "project:\n"
            "  name: service\n"
            "dependencies:\n"
            "  runtimeOnly:\n"
            "    - module: org.postgresql:postgresql:42.6.0\n"
            "      lazy: true\n"
        )

        build = load_declarations(str(path))
        assert bucket_notations(build, "runtimeOnly") == []

        build.realize()
        assert bucket_notations(build, "runtimeOnly") == ["org.postgresql:postgresql:42.6.0"]

    def test_unknown_bucket_is_rejected(self, temp_dir):
        path = temp_dir / "dependencies.toml"
        path.write_text('[dependencies]\ntestImplementation = ["g:a:1"]\n')

        with pytest.raises(InvalidUserDataError, match="Unknown bucket"):
            load_declarations(str(path))

    def test_unknown_library_is_rejected(self, temp_dir):
        path = temp_dir / "dependencies.toml"
        path.write_text('[dependencies]\nimplementation = [{ library = "missing" }]\n')

        with pytest.raises(InvalidUserDataError, match="no library 'missing'"):
            load_declarations(str(path))

    def test_entry_with_two_notations_is_rejected(self, temp_dir):
        path = temp_dir / "dependencies.toml"
        path.write_text(
            '[dependencies]\nimplementation = [{ module = "g:a:1", library = "a" }]\n'
        )

        with pytest.raises(ValueError, match="exactly one of"):
            load_declarations(str(path))

    def test_unparseable_file(self, temp_dir):
        path = temp_dir / "dependencies.toml"
        path.write_text("[dependencies\n")

        with pytest.raises(ValueError, match="Failed to parse"):
            load_declarations(str(path))

    def test_unsupported_file_type(self, temp_dir):
        path = temp_dir / "dependencies.gradle"
        path.write_text("dependencies {}")

        with pytest.raises(ValueError, match="Unsupported declarations file type"):
            load_declarations(str(path))

    def test_mixed_entry_arrays(self, temp_dir):
        path = temp_dir / "dependencies.toml"
        path.write_text(
            '[libraries]\nguava = "com.google.guava:guava:32.1.2-jre"\n\n'
            "[dependencies]\n"
            'implementation = [\n    "g:a:1",\n    { library = "guava" },\n]\n'
            'compileOnly = ["g:b:1", { module = "g:c:1" }]\n'
        )

        build = load_declarations(str(path))
        build.realize()

        assert bucket_notations(build, "implementation") == [
            "g:a:1",
            "com.google.guava:guava:32.1.2-jre",
        ]
        assert bucket_notations(build, "compileOnly") == ["g:b:1", "g:c:1"]

    def test_sibling_projects_as_array_of_tables(self, temp_dir):
        path = temp_dir / "dependencies.toml"
        path.write_text(
            '[project]\nname = "app"\n\n'
            '[[projects]]\nname = "core"\n\n'
            '[[projects]]\nname = "api"\n\n'
            '[dependencies]\nimplementation = [{ project = "core" }, { project = ":api" }]\n'
        )

        build = load_declarations(str(path))

        assert bucket_notations(build, "implementation") == ["project ':core'", "project ':api'"]

    def test_sibling_projects_as_names(self, temp_dir):
        path = temp_dir / "dependencies.json"
        path.write_text(
            json.dumps(
                {"projects": ["core"], "dependencies": {"runtimeOnly": [{"project": "core"}]}}
            )
        )

        build = load_declarations(str(path))

        assert bucket_notations(build, "runtimeOnly") == ["project ':core'"]

    def test_unknown_top_level_section_is_rejected(self, temp_dir):
        path = temp_dir / "dependencies.toml"
        path.write_text('[project]\nname = "app"\nprojects = ["core"]\n')

        with pytest.raises(ValueError, match="unknown keys: projects"):
            load_declarations(str(path))

        path.write_text('[plugins]\njava = true\n')

        with pytest.raises(ValueError, match="unknown sections: plugins"):
            load_declarations(str(path))

    @pytest.mark.parametrize(
        "entry,message",
        [
            ('{ module = "g:a:1", exclude = ["commons-logging"] }', "Exclude rule"),
            ('{ module = "g:a:1", exclude = { artifact = "x" } }', "Exclude rule"),
            ('{ module = "g:a:1", capabilities = [{ name = "x" }] }', "Capability"),
            ('{ module = "g:a:1", capabilities = 3 }', "must be a list"),
            ('{ module = "g:a:1", transitive = "no" }', "true or false"),
            ("{ module = 42 }", "must be a string"),
        ],
    )
    def test_malformed_entry_values_are_rejected(self, temp_dir, entry, message):
        path = temp_dir / "dependencies.toml"
        path.write_text(f"[dependencies]\nimplementation = [{entry}]\n")

        with pytest.raises(ValueError, match=message):
            load_declarations(str(path))

    def test_single_capability_string(self, temp_dir):
        path = temp_dir / "dependencies.toml"
        path.write_text(
            '[dependencies]\nimplementation = [{ module = "com.acme:ledger:1.0", '
            'capabilities = "com.acme:ledger-api" }]\n'
        )

        build = load_declarations(str(path))
        (ledger,) = build.dependencies.bucket("implementation").dependencies

        assert ledger.requested_capabilities == [Capability("com.acme", "ledger-api", None)]

    def test_non_table_project_section_is_rejected(self, temp_dir):
        path = temp_dir / "dependencies.yaml"
        path.write_text("project: service\n")

        with pytest.raises(ValueError, match="'project' in the declarations file must be a table"):
            load_declarations(str(path))

    def test_missing_file_is_recorded(self, temp_dir):
        recorded = []
        get_error_handler().register_callback(recorded.append, ErrorCategory.FILESYSTEM)

        with pytest.raises(InvalidUserDataError, match="does not exist"):
            load_declarations(str(temp_dir / "missing.toml"))

        assert len(recorded) == 1

    def test_factory_configuration_names_the_buckets(self, temp_dir):
        config = ComprehensiveConfig()
        config.buckets.annotation_processor = "kapt"
        path = temp_dir / "dependencies.toml"
        path.write_text('[dependencies]\nkapt = ["com.google.dagger:dagger-compiler:2.48"]\n')

        build = load_declarations(str(path), DependencyFactory(config))

        assert bucket_notations(build, "kapt") == ["com.google.dagger:dagger-compiler:2.48"]

    def test_report_summary(self, sample_declarations_toml):
        build = load_declarations(str(sample_declarations_toml))

        summary = build_to_dict(build)

        assert summary["buckets"]["implementation"]["pending"] == 1
        declared = summary["buckets"]["implementation"]["dependencies"]
        assert declared[0]["group"] == "org.slf4j"
        assert declared[1]["path"] == ":core"


class TestConfiguration:
    """Test configuration discovery, overrides and validation."""

    def test_defaults(self):
        config = get_config()

        assert config.notation.test_fixtures_suffix == "-test-fixtures"
        assert config.buckets.names() == [
            "implementation",
            "compileOnly",
            "runtimeOnly",
            "annotationProcessor",
        ]

    def test_project_config_file(self, temp_dir):
        (temp_dir / ".dep-notation.toml").write_text(
            '[buckets]\nannotation_processor = "kapt"\n'
        )
        reset_config()

        project = Project("app")

        assert "kapt" in project.configurations
        assert "annotationProcessor" not in project.configurations

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("DEP_NOTATION_TEST_FIXTURES_SUFFIX", "-fixtures")
        monkeypatch.setenv("DEP_NOTATION_LOG_LEVEL", "debug")
        reset_config()

        config = get_config()

        assert config.notation.test_fixtures_suffix == "-fixtures"
        assert config.logging.log_level == "DEBUG"

    def test_invalid_file_values_fall_back_to_defaults(self, temp_dir):
        (temp_dir / ".dep-notation.json").write_text(
            json.dumps({"notation": {"test_fixtures_suffix": ""}})
        )
        reset_config()

        assert get_config().notation.test_fixtures_suffix == "-test-fixtures"

    def test_validate_config_values(self):
        config = ComprehensiveConfig()
        config.buckets.runtime_only = "implementation"
        config.logging.log_level = "LOUD"

        errors = validate_config_values(config)

        assert "buckets names must be distinct" in errors
        assert any(error.startswith("logging.log_level") for error in errors)

    def test_sample_config_is_valid(self):
        data = json.loads(create_sample_config())
        config = ComprehensiveConfig()
        for section, values in data.items():
            for key, value in values.items():
                setattr(getattr(config, section), key, value)

        assert validate_config_values(config) == []
