"""
Dependency declarations of a JVM-style component.

Routes loosely typed notations into the component's four buckets:

- plain notations are created and added immediately
- providers declaring a ``DependencyBundle`` are forced immediately and every
  element is added in order, so bundle membership is known at declaration time
- any other provider is added later, when the bucket realizes pending entries

Test-fixtures requests attach a capability requirement to a dependency so the
result can be declared through the same pathway.
"""

from collections.abc import Mapping
from typing import Callable, List, Optional

from .cli_config import ComprehensiveConfig, get_config
from .configuration import Configuration
from .dependency import (
    Capability,
    ClasspathNotation,
    Dependency,
    ExternalModuleDependency,
    MinimalDependency,
    ProjectDependency,
    ProjectTestFixtures,
)
from .error_handling import ErrorCategory, raise_invalid_notation
from .factory import Customizer, DependencyFactory
from .notation import NotationKind, classify
from .project import Project
from .providers import Provider
from .structured_logging import log_bundle_expanded, log_dependency_declared


class ComponentDependencies:
    """Declares dependencies into a component's buckets."""

    def __init__(
        self,
        implementation: Configuration,
        compile_only: Configuration,
        runtime_only: Configuration,
        annotation_processor: Configuration,
        factory: Optional[DependencyFactory] = None,
        config: Optional[ComprehensiveConfig] = None,
    ):
        self._implementation = implementation
        self._compile_only = compile_only
        self._runtime_only = runtime_only
        self._annotation_processor = annotation_processor
        self.config = config or get_config()
        self.factory = factory or DependencyFactory(self.config)

    @classmethod
    def for_project(
        cls, project: Project, factory: Optional[DependencyFactory] = None
    ) -> "ComponentDependencies":
        """Bind to the buckets a project created from the configured bucket names."""
        config = factory.config if factory else project.config
        names = config.buckets
        configurations = project.configurations
        return cls(
            configurations[names.implementation],
            configurations[names.compile_only],
            configurations[names.runtime_only],
            configurations[names.annotation_processor],
            factory=factory,
            config=config,
        )

    def implementation(self, dependency, configuration: Optional[Customizer] = None) -> None:
        self._do_add(self._implementation, dependency, configuration)

    def compile_only(self, dependency, configuration: Optional[Customizer] = None) -> None:
        self._do_add(self._compile_only, dependency, configuration)

    def runtime_only(self, dependency, configuration: Optional[Customizer] = None) -> None:
        self._do_add(self._runtime_only, dependency, configuration)

    def annotation_processor(
        self, dependency, configuration: Optional[Customizer] = None
    ) -> None:
        self._do_add(self._annotation_processor, dependency, configuration)

    def buckets(self) -> List[Configuration]:
        return [
            self._implementation,
            self._compile_only,
            self._runtime_only,
            self._annotation_processor,
        ]

    def bucket(self, name: str) -> Configuration:
        for configuration in self.buckets():
            if configuration.name == name:
                return configuration
        raise_invalid_notation(
            f"Unknown bucket '{name}'. Known buckets: "
            + ", ".join(configuration.name for configuration in self.buckets()),
            "component_dependencies",
            "bucket",
            category=ErrorCategory.CONFIGURATION,
        )

    def add(self, bucket_name: str, dependency, configuration: Optional[Customizer] = None) -> None:
        """Declare into a bucket chosen by name."""
        self._do_add(self.bucket(bucket_name), dependency, configuration)

    def gradle_api(self) -> Dependency:
        return self.factory.create(ClasspathNotation.GRADLE_API)

    def gradle_test_kit(self) -> Dependency:
        return self.factory.create(ClasspathNotation.GRADLE_TEST_KIT)

    def local_groovy(self) -> Dependency:
        return self.factory.create(ClasspathNotation.LOCAL_GROOVY)

    def test_fixtures(self, dependency) -> Dependency:
        """
        Request the test-fixtures variant of a project or module dependency.

        Project dependencies get a structured project capability; module
        dependencies require ``group:name<suffix>`` at any version. The
        dependency is returned so it can be declared directly.
        """
        if isinstance(dependency, Project):
            dependency = self.factory.create(dependency)
        elif isinstance(dependency, (MinimalDependency, str, Mapping)):
            dependency = self.factory.create(dependency)

        if isinstance(dependency, ProjectDependency):
            dependency.capabilities(ProjectTestFixtures(dependency.dependency_project))
            return dependency

        if isinstance(dependency, ExternalModuleDependency):
            capability = Capability(
                dependency.group,
                dependency.name + self.config.notation.test_fixtures_suffix,
                None,
            )
            dependency.capabilities(lambda handler: handler.require_capability(capability))
            return dependency

        raise_invalid_notation(
            f"Cannot request the test fixtures of {dependency!r}: "
            "expected a project or module dependency",
            "component_dependencies",
            "test_fixtures",
            category=ErrorCategory.CAPABILITY,
            details={"notation_type": type(dependency).__name__},
        )

    def _do_add(self, bucket: Configuration, dependency, customizer: Optional[Customizer]) -> None:
        kind = classify(dependency)

        if kind is NotationKind.CONVERTIBLE:
            unwrapped = dependency.as_provider()
            if not isinstance(unwrapped, Provider):
                raise_invalid_notation(
                    f"{dependency!r}.as_provider() returned {unwrapped!r}, which is not a provider",
                    "component_dependencies",
                    "_do_add",
                )
            dependency, kind = unwrapped, classify(unwrapped)

        if kind is NotationKind.DEFERRED_BUNDLE:
            self._do_add_bundle(bucket, dependency, customizer)
        elif kind is NotationKind.DEFERRED:
            self._do_add_lazy(bucket, dependency, customizer)
        else:
            self._do_add_eager(bucket, dependency, customizer)

    def _do_add_eager(self, bucket: Configuration, dependency, customizer: Optional[Customizer]) -> None:
        self._check_not_configuration(bucket, dependency, lazy=False)
        created = self.factory.create(dependency, customizer)
        bucket.dependencies.add(created)
        log_dependency_declared(bucket.name, NotationKind.EAGER.value, str(created))

    def _do_add_bundle(self, bucket: Configuration, bundle_provider: Provider, customizer: Optional[Customizer]) -> None:
        bundle = bundle_provider.get()
        self._check_not_configuration(bucket, bundle, lazy=False, category=ErrorCategory.BUNDLE)
        # Every element is created before any is added, so a bad element adds nothing
        created = []
        for element in bundle:
            self._check_not_configuration(bucket, element, lazy=False, category=ErrorCategory.BUNDLE)
            created.append(self.factory.create(element, customizer, category=ErrorCategory.BUNDLE))
        bucket.dependencies.add_all(created)
        log_bundle_expanded(bucket.name, len(created))

    def _do_add_lazy(self, bucket: Configuration, dependency_provider: Provider, customizer: Optional[Customizer]) -> None:
        bucket.dependencies.add_later(
            dependency_provider.map(self._lazy_dependency(bucket, customizer), Dependency)
        )

    def _lazy_dependency(
        self, bucket: Configuration, customizer: Optional[Customizer]
    ) -> Callable[[object], Dependency]:
        def transform(lazy_notation) -> Dependency:
            self._check_not_configuration(bucket, lazy_notation, lazy=True)
            return self.factory.create(lazy_notation, customizer, category=ErrorCategory.DEFERRED)

        return transform

    def _check_not_configuration(
        self,
        bucket: Configuration,
        notation,
        lazy: bool,
        category: Optional[ErrorCategory] = None,
    ) -> None:
        if not isinstance(notation, Configuration):
            return
        via = " using a provider" if lazy else ""
        raise_invalid_notation(
            f"Adding a configuration as a dependency{via} isn't supported. "
            f"You should call {bucket.name}.extends_from({notation.name}) instead",
            "component_dependencies",
            "_check_not_configuration",
            category=category or (ErrorCategory.DEFERRED if lazy else ErrorCategory.NOTATION),
            details={"bucket": bucket.name, "configuration": notation.name},
        )
