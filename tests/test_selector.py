from __future__ import annotations

import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

import play_args
import play_module
from playground import PlayClass, PlayFib, PlaySubClass

from tracewrap import InvalidOptionError, MethodKind, Visibility, select
from tracewrap.selector import ROOT_NAMES, visibility_of


class Protocol:
    def __init__(self):
        self.items = []

    def __repr__(self):
        return "Protocol()"

    def __len__(self):
        return len(self.items)

    def __call__(self):
        return self

    def __eq__(self, other):
        return self is other

    __hash__ = object.__hash__


class Shadowing(PlayClass):
    play_friendly = None


class VisibilityOfTests(unittest.TestCase):
    def test_naming_conventions(self) -> None:
        self.assertIs(Visibility.PUBLIC, visibility_of("name"))
        self.assertIs(Visibility.PROTECTED, visibility_of("_name"))
        self.assertIs(Visibility.PRIVATE, visibility_of("__name"))
        self.assertIs(Visibility.PUBLIC, visibility_of("__call__"))

    def test_mangled_names_depend_on_the_receiver(self) -> None:
        self.assertIs(Visibility.PRIVATE, visibility_of("_PlayClass__solitaire", PlayClass))
        self.assertIs(Visibility.PRIVATE, visibility_of("_PlayClass__solitaire", PlaySubClass()))
        self.assertIs(Visibility.PROTECTED, visibility_of("_PlayClass__solitaire", PlayFib))
        self.assertIs(Visibility.PROTECTED, visibility_of("_PlayClass__solitaire"))


class SelectTests(unittest.TestCase):
    def test_module_functions(self) -> None:
        self.assertEqual(("one", "two", "fails"), select(play_module, "methods", "public"))
        self.assertEqual(
            ("one", "two", "fails", "_helper"), select(play_module, "methods", "protected")
        )
        self.assertEqual(
            ("one", "two", "fails", "_helper", "__hidden"),
            select(play_module, MethodKind.SELF, Visibility.PRIVATE),
        )

    def test_module_has_no_instance_methods(self) -> None:
        self.assertEqual((), select(play_module, MethodKind.INSTANCE, Visibility.PRIVATE))

    def test_instance_methods(self) -> None:
        self.assertEqual(
            ("play", "play_friendly", "play_solitaire"),
            select(PlayClass, MethodKind.INSTANCE, Visibility.PUBLIC),
        )
        self.assertEqual(
            ("play", "play_friendly", "play_solitaire", "_friendly"),
            select(PlayClass, MethodKind.INSTANCE, Visibility.PROTECTED),
        )
        self.assertEqual(
            ("play", "play_friendly", "play_solitaire", "_friendly", "_PlayClass__solitaire"),
            select(PlayClass, MethodKind.INSTANCE, Visibility.PRIVATE),
        )

    def test_class_methods(self) -> None:
        self.assertEqual(("play_hello", "shout"), select(PlayClass, MethodKind.SELF))

    def test_all_lists_self_methods_first(self) -> None:
        self.assertEqual(
            ("play_hello", "shout", "play", "play_friendly", "play_solitaire"),
            select(PlayClass, MethodKind.ALL, Visibility.PUBLIC),
        )

    def test_inherited_methods_most_specific_first(self) -> None:
        self.assertEqual(
            ("play", "play_friendly", "play_solitaire", "_friendly", "_PlayClass__solitaire"),
            select(PlaySubClass, MethodKind.INSTANCE, Visibility.PRIVATE),
        )
        self.assertEqual(("play_hello", "shout"), select(PlaySubClass, MethodKind.SELF))

    def test_shadowed_method_is_not_selected(self) -> None:
        self.assertEqual(
            ("play", "play_solitaire"),
            select(Shadowing, MethodKind.INSTANCE, Visibility.PUBLIC),
        )

    def test_object_receiver(self) -> None:
        self.assertEqual(("fib",), select(PlayFib(), MethodKind.SELF, Visibility.PUBLIC))
        self.assertEqual((), select(PlayFib(), MethodKind.INSTANCE, Visibility.PUBLIC))

    def test_root_object_methods_are_excluded(self) -> None:
        self.assertEqual(
            ("__len__", "__call__"), select(Protocol, MethodKind.INSTANCE, Visibility.PRIVATE)
        )
        self.assertIn("__init__", ROOT_NAMES)
        self.assertIn("__repr__", ROOT_NAMES)

    def test_visibility_cascade(self) -> None:
        for receiver, kind in [
            (play_module, MethodKind.SELF),
            (play_args, MethodKind.SELF),
            (PlayClass, MethodKind.INSTANCE),
            (PlaySubClass, MethodKind.ALL),
            (PlayClass(), MethodKind.SELF),
        ]:
            with self.subTest(receiver=receiver, kind=kind):
                public = set(select(receiver, kind, Visibility.PUBLIC))
                protected = set(select(receiver, kind, Visibility.PROTECTED))
                private = set(select(receiver, kind, Visibility.PRIVATE))
                self.assertLessEqual(public, protected)
                self.assertLessEqual(protected, private)

    def test_invalid_visibility(self) -> None:
        with self.assertRaises(InvalidOptionError) as raised:
            select(PlayClass, MethodKind.INSTANCE, "bogus")
        self.assertIn("bogus", str(raised.exception))
        self.assertIsInstance(raised.exception, ValueError)

    def test_invalid_kind(self) -> None:
        with self.assertRaises(InvalidOptionError) as raised:
            select(PlayClass, "static_methods")
        self.assertEqual("method_type", raised.exception.option)
        self.assertEqual("static_methods", raised.exception.value)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
