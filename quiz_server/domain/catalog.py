"""Read-only lookup tables for quizzes, codes and wheels.

The catalog is built once at startup and shared by every request.
There is no way to change it afterwards.
"""

import logging
import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from pydantic import ValidationError

from quiz_server.models.catalog_models import CatalogConfig, Code, Quiz, Wheel


class CatalogError(Exception):
    """The catalog document could not be read or validated"""


def normalize_code(code: str) -> str:
    return code.strip().lower()


class Catalog:
    __slots__ = ("_quizzes", "_codes", "_wheels")

    def __init__(
        self,
        quizzes: Iterable[Quiz] = (),
        codes: Iterable[Code] = (),
        wheels: Iterable[Wheel] = (),
    ):
        object.__setattr__(
            self, "_quizzes", MappingProxyType({quiz.name: quiz for quiz in quizzes})
        )
        object.__setattr__(
            self,
            "_codes",
            MappingProxyType({normalize_code(code.code): code for code in codes}),
        )
        object.__setattr__(self, "_wheels", frozenset(wheel.name for wheel in wheels))

    def __setattr__(self, name, value):
        raise AttributeError("Catalog is read-only")

    @property
    def quizzes(self) -> Mapping[str, Quiz]:
        return self._quizzes

    @property
    def codes(self) -> Mapping[str, Code]:
        return self._codes

    @property
    def wheels(self) -> frozenset:
        return self._wheels

    def get_quiz(self, quiz_name: str) -> Quiz | None:
        return self._quizzes.get(quiz_name)

    def get_code(self, code: str) -> Code | None:
        """Look up a code, ignoring case and surrounding whitespace"""
        return self._codes.get(normalize_code(code))

    def has_wheel(self, wheel_name: str) -> bool:
        return wheel_name in self._wheels

    @classmethod
    def from_config(cls, config: CatalogConfig) -> "Catalog":
        return cls(config.quiz, config.code, config.wheel)

    @classmethod
    def from_toml(cls, text: str) -> "Catalog":
        """Parse a quiz.toml document

        Args:
            text (str): TOML with [[quiz]], [[code]] and [[wheel]] tables

        Raises:
            CatalogError: The document is not valid TOML or does not match the catalog models

        Returns:
            Catalog: Catalog holding every entry of the document
        """
        try:
            config = CatalogConfig.model_validate(tomllib.loads(text))
        except (tomllib.TOMLDecodeError, ValidationError) as e:
            raise CatalogError(f"Invalid catalog: {e}") from e
        return cls.from_config(config)

    @classmethod
    def load(cls, path: str | Path) -> "Catalog":
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise CatalogError(f"Cannot read catalog {path}: {e}") from e
        catalog = cls.from_toml(text)
        logging.info(
            f"Loaded catalog {path}: {len(catalog.quizzes)} quizzes, "
            f"{len(catalog.codes)} codes, {len(catalog.wheels)} wheels"
        )
        return catalog
