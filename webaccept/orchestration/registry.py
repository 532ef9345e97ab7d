"""
Registry mapping case names to test case classes.

Cases are registered explicitly with the ``register`` decorator or resolved
from the configured cases package by naming convention: the name ``Login``
(or ``LoginCase``) resolves to the class ``LoginCase``, either exported by the
package itself or defined in its ``login_case`` module.
"""

import importlib
import inspect
import re
from typing import Callable, Dict, Optional, Type, Union

from webaccept.error_handling.exceptions import ConfigurationError
from webaccept.orchestration.case import TestCase

CASE_SUFFIX = "Case"


def strip_case_suffix(name: str) -> str:
    """Remove one literal trailing ``Case``."""
    if name.endswith(CASE_SUFFIX) and len(name) > len(CASE_SUFFIX):
        return name[: -len(CASE_SUFFIX)]
    return name


def module_name_for(name: str) -> str:
    """``CheckoutGuest`` -> ``checkout_guest_case``."""
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()
    return f"{snake}_case"


def validate_case_class(candidate: object, name: str) -> Type[TestCase]:
    if not (inspect.isclass(candidate) and issubclass(candidate, TestCase)):
        raise ConfigurationError(
            f'Test case "{name}" must be a subclass of TestCase',
            details={"case": name},
        )
    if inspect.isabstract(candidate):
        raise ConfigurationError(
            f'Test case "{name}" does not implement the case body',
            details={"case": name},
        )
    return candidate


class CaseRegistry:
    """Maps case names to constructors, validated at suite-build time."""

    def __init__(self, package: Optional[str] = None) -> None:
        self.package = package
        self._cases: Dict[str, Type[TestCase]] = {}

    def register(
        self,
        case_class: Optional[Type[TestCase]] = None,
        *,
        name: Optional[str] = None,
    ) -> Union[Type[TestCase], Callable[[Type[TestCase]], Type[TestCase]]]:
        """
        Register a case class, usable as ``@register`` or ``@register(name=...)``.

        Raises:
            ConfigurationError: If the class is not a concrete TestCase
        """

        def decorator(cls: Type[TestCase]) -> Type[TestCase]:
            key = strip_case_suffix(name or cls.__name__)
            self._cases[key] = validate_case_class(cls, key)
            return cls

        if case_class is not None:
            return decorator(case_class)
        return decorator

    def names(self):
        return sorted(self._cases)

    def __contains__(self, name: str) -> bool:
        return strip_case_suffix(name) in self._cases

    def resolve(self, name: str, package: Optional[str] = None) -> Type[TestCase]:
        """
        Find the class for a case name.

        Args:
            name: Case name with or without the trailing "Case"
            package: Package searched when the name is not registered
                (defaults to the registry package)

        Raises:
            ConfigurationError: If no such case exists or it is not a TestCase
        """
        key = strip_case_suffix(name)
        if key in self._cases:
            return self._cases[key]

        package = package or self.package
        if not package:
            raise ConfigurationError(
                f'Test case "{key}{CASE_SUFFIX}" is not registered',
                details={"case": name},
            )

        class_name = f"{key}{CASE_SUFFIX}"
        candidate = self._import_from_package(package, class_name, key)
        if candidate is None:
            raise ConfigurationError(
                f'Test case "{class_name}" not found in package "{package}"',
                details={"case": name, "package": package},
            )

        self._cases[key] = validate_case_class(candidate, key)
        return self._cases[key]

    def _import_from_package(self, package_name: str, class_name: str, key: str) -> Optional[object]:
        try:
            package = importlib.import_module(package_name)
        except ImportError as e:
            raise ConfigurationError(
                f'Cases package "{package_name}" cannot be imported: {e}', cause=e
            ) from e

        if hasattr(package, class_name):
            return getattr(package, class_name)

        module_path = f"{package_name}.{module_name_for(key)}"
        try:
            module = importlib.import_module(module_path)
        except ModuleNotFoundError as e:
            if e.name != module_path:
                raise
            return None
        return getattr(module, class_name, None)


registry = CaseRegistry()
register_case = registry.register
