from __future__ import annotations

import os
import sys
import threading
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from tracewrap.context import ContextId, ContextTracker
from tracewrap.shell import CONTEXT_PALETTE

MAIN = ContextId(process=100, thread=5, primary=False)


class ContextIdTests(unittest.TestCase):
    def test_current(self) -> None:
        ident = ContextId.current()
        self.assertEqual(os.getpid(), ident.process)
        self.assertEqual(threading.get_ident(), ident.thread)
        self.assertEqual(threading.current_thread() is threading.main_thread(), ident.primary)

    def test_key_ignores_primary(self) -> None:
        self.assertEqual((1, 2), ContextId(1, 2, True).key)
        self.assertEqual(ContextId(1, 2, True).key, ContextId(1, 2, False).key)


class ContextTrackerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tracker = ContextTracker(main=MAIN)

    def test_contexts_are_created_once(self) -> None:
        ctx = self.tracker.current(MAIN)
        self.assertIs(ctx, self.tracker.current(MAIN))
        self.assertEqual(1, len(self.tracker))
        self.assertTrue(self.tracker.is_main(ctx))

    def test_default_main_is_calling_thread(self) -> None:
        tracker = ContextTracker()
        self.assertEqual(ContextId.current(), tracker.main)
        self.assertTrue(tracker.is_main(tracker.current()))

    def test_depth_never_goes_negative(self) -> None:
        ctx = self.tracker.current(MAIN)
        self.tracker.increment(ctx)
        self.tracker.increment(ctx)
        self.assertEqual(2, self.tracker.indent(ctx))
        for _ in range(4):
            self.tracker.decrement(ctx)
        self.assertEqual(0, self.tracker.indent(ctx))

    def test_depth_is_per_context(self) -> None:
        main = self.tracker.current(MAIN)
        other = self.tracker.current(ContextId(100, 6))
        self.tracker.increment(main)
        self.assertEqual(1, main.depth)
        self.assertEqual(0, other.depth)

    def test_colours_follow_first_seen_order_and_cycle(self) -> None:
        contexts = [
            self.tracker.current(ContextId(100, thread))
            for thread in range(len(CONTEXT_PALETTE) + 2)
        ]
        self.assertEqual(
            list(CONTEXT_PALETTE) + list(CONTEXT_PALETTE[:2]),
            [ctx.colour for ctx in contexts],
        )
        self.assertEqual(contexts, list(self.tracker))

    def test_identity_tags(self) -> None:
        cases = [
            (MAIN, None),
            (ContextId(100, 1, True), "100"),
            (ContextId(100, 123456789), "6789"),
            (ContextId(200, 123456789), "200:6789"),
            (ContextId(200, 42, True), "200:42"),
        ]
        for ident, expected in cases:
            with self.subTest(ident=ident):
                self.assertEqual(expected, self.tracker.identity_tag(self.tracker.current(ident)))

    def test_concurrent_creation_yields_one_context_per_thread(self) -> None:
        tracker = ContextTracker()
        barrier = threading.Barrier(8)
        seen = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            first = tracker.current()
            second = tracker.current()
            with lock:
                seen.append((first, second))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(8, len(tracker))
        for first, second in seen:
            self.assertIs(first, second)
        self.assertEqual(8, len({id(first) for first, _ in seen}))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
