from __future__ import annotations

import tempfile
import unittest
import uuid
from pathlib import Path

from stamping.logic.stamp_planner import plan
from stamping.logic.token_generator import QrTokenGenerator, verification_url
from stamping.models.stamp_plan import TokenRef


class CountingGenerator:
    def __init__(self) -> None:
        self.minted: list[TokenRef] = []

    def mint(self) -> TokenRef:
        tid = uuid.uuid4()
        tok = TokenRef(id=tid, image_path=Path(f"/nonexistent/{tid}.png"), target_url=f"u/{tid}")
        self.minted.append(tok)
        return tok


class TestStampPlanner(unittest.TestCase):
    def test_four_corner_positions(self) -> None:
        gen = CountingGenerator()
        p = plan(gen)
        coords = [(pos.x, pos.y) for pos in p.positions()]
        self.assertEqual(coords, [(5.0, 5.0), (520.0, 5.0), (5.0, 770.0), (520.0, 770.0)])
        self.assertIsNone(p.custom)
        self.assertEqual(len(p), 4)
        self.assertEqual(len(gen.minted), 4)

    def test_custom_position_appended(self) -> None:
        gen = CountingGenerator()
        p = plan(gen, (100.0, 200.5))
        self.assertEqual(len(p), 5)
        self.assertEqual((p.custom.x, p.custom.y), (100.0, 200.5))
        self.assertEqual(list(p.positions())[-1], p.custom)
        self.assertEqual(len(gen.minted), 5)

    def test_tokens_are_distinct(self) -> None:
        p = plan(CountingGenerator(), (1.0, 1.0))
        ids = [t.id for t in p.tokens()]
        self.assertEqual(len(ids), len(set(ids)))

    def test_on_mint_sees_every_token(self) -> None:
        seen: list[TokenRef] = []
        p = plan(CountingGenerator(), on_mint=seen.append)
        self.assertEqual(seen, p.tokens())

    def test_badge_is_centered_in_footprint(self) -> None:
        p = plan(CountingGenerator())
        self.assertEqual(p.top_right.badge_origin(), (520.0 + 30.0, 5.0 + 30.0))


class TestQrTokenGenerator(unittest.TestCase):
    def test_mint_writes_unique_png(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            gen = QrTokenGenerator(Path(td), domain="verify.example", pixels=125)
            a, b = gen.mint(), gen.mint()
            self.assertNotEqual(a.id, b.id)
            self.assertTrue(a.image_path.is_file())
            self.assertEqual(a.image_path.name, f"{a.id}.png")
            self.assertEqual(a.target_url, f"https://verify.example/verify/{a.id}")
            self.assertEqual(verification_url("x.y", b.id), f"https://x.y/verify/{b.id}")


if __name__ == "__main__":
    unittest.main()
