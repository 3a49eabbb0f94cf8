from __future__ import annotations

import unittest

from wellquest.fairdraw import (
    DEFAULT_ENCODING_REGISTRY,
    DELIMITED,
    LENGTH_PREFIXED,
    EncodingRegistry,
    SeedEncoding,
    generate_hash,
    perform_draw,
    verify_draw,
)


class DefaultRegistryTests(unittest.TestCase):
    def test_default_registry_contains_expected_encodings(self) -> None:
        available = DEFAULT_ENCODING_REGISTRY.available_encodings()
        self.assertIn(DELIMITED, available)
        self.assertIn(LENGTH_PREFIXED, available)

    def test_delimited_encoding(self) -> None:
        encoding = DEFAULT_ENCODING_REGISTRY.get(DELIMITED)
        self.assertEqual(
            encoding.encode(["alice", "bob", "carol"], "ch123", "2024-06-01T00:00:00.000Z"),
            "alice,bob,carol:ch123:2024-06-01T00:00:00.000Z",
        )

    def test_length_prefixed_encoding(self) -> None:
        encoding = DEFAULT_ENCODING_REGISTRY.get(LENGTH_PREFIXED)
        self.assertEqual(
            encoding.encode(["alice", "bob", "carol"], "ch123", "2024-06-01T00:00:00.000Z"),
            "1:3,5:alice,3:bob,5:carol,5:ch123,24:2024-06-01T00:00:00.000Z,",
        )

    def test_length_prefix_counts_utf8_bytes(self) -> None:
        encoding = DEFAULT_ENCODING_REGISTRY.get(LENGTH_PREFIXED)
        self.assertEqual(encoding.encode(["zoë"], "c", "t"), "1:1,4:zoë,1:c,1:t,")


class LengthPrefixedDrawTests(unittest.TestCase):
    def test_regression_fixture(self) -> None:
        result = perform_draw(
            ["bob", "alice", "carol"],
            "ch123",
            "2024-06-01T00:00:00.000Z",
            encoding=LENGTH_PREFIXED,
        )
        self.assertEqual(
            result.verification_hash,
            "d1c171c3982379fdcdc4003209cd349b9e6fbfb7439c4c375f9f9039b5568051",
        )
        # 0xd1c171c3 % 3 == 2
        self.assertEqual(result.winner, "carol")
        self.assertEqual(result.encoding, LENGTH_PREFIXED)

    def test_single_participant_uses_framing(self) -> None:
        result = perform_draw(
            ["alice"], "chal1", "2024-01-01T00:00:00Z", encoding=LENGTH_PREFIXED
        )
        self.assertEqual(result.winner, "alice")
        self.assertEqual(
            result.verification_hash,
            "8b62b20a84b94f0c56001e4b5dd4095a056f18b74315d5792273ba322c6af651",
        )

    def test_delimiters_inside_ids_collide_only_when_delimited(self) -> None:
        first = ["a,b", "c"]
        second = ["a", "b,c"]
        self.assertEqual(
            perform_draw(first, "x", "t").verification_hash,
            perform_draw(second, "x", "t").verification_hash,
        )
        self.assertNotEqual(
            perform_draw(first, "x", "t", encoding=LENGTH_PREFIXED).verification_hash,
            perform_draw(second, "x", "t", encoding=LENGTH_PREFIXED).verification_hash,
        )

    def test_colon_inside_challenge_id_does_not_collide(self) -> None:
        first = perform_draw(["a", "b"], "x:y", "t", encoding=LENGTH_PREFIXED)
        second = perform_draw(["a", "b"], "x", "y:t", encoding=LENGTH_PREFIXED)
        self.assertNotEqual(first.verification_hash, second.verification_hash)

    def test_verification_requires_matching_encoding(self) -> None:
        result = perform_draw(["a", "b", "c"], "x", "t", encoding=LENGTH_PREFIXED)
        self.assertTrue(
            verify_draw(
                ["a", "b", "c"],
                "x",
                "t",
                result.winner,
                result.verification_hash,
                encoding=LENGTH_PREFIXED,
            )
        )
        self.assertFalse(
            verify_draw(["a", "b", "c"], "x", "t", result.winner, result.verification_hash)
        )


class CustomRegistryTests(unittest.TestCase):
    def test_register_and_lookup(self) -> None:
        registry = EncodingRegistry()
        with self.assertRaises(KeyError):
            registry.get("missing")
        registry.register(DEFAULT_ENCODING_REGISTRY.get(DELIMITED))
        with self.assertRaises(ValueError):
            registry.register(DEFAULT_ENCODING_REGISTRY.get(DELIMITED))
        self.assertEqual(list(registry.available_encodings()), [DELIMITED])

    def test_replace_existing_registration(self) -> None:
        registry = EncodingRegistry()
        registry.register(SeedEncoding(key="pipe", encoder=lambda p, c, t: "|".join(p)))
        replacement = SeedEncoding(
            key="pipe", encoder=lambda p, c, t: "|".join([*p, c, t])
        )
        registry.register(replacement, replace=True)
        self.assertIs(registry.get("pipe"), replacement)

    def test_perform_draw_with_custom_registry(self) -> None:
        registry = EncodingRegistry()
        registry.register(
            SeedEncoding(key="pipe", encoder=lambda p, c, t: "|".join([*p, c, t]))
        )
        result = perform_draw(["b", "a"], "c", "t", encoding="pipe", registry=registry)
        self.assertEqual(result.verification_hash, generate_hash("a|b|c|t"))
        self.assertTrue(
            verify_draw(
                ["a", "b"],
                "c",
                "t",
                result.winner,
                result.verification_hash,
                encoding="pipe",
                registry=registry,
            )
        )

    def test_available_encodings_returns_copy(self) -> None:
        snapshot = DEFAULT_ENCODING_REGISTRY.available_encodings()
        snapshot.pop(DELIMITED)
        self.assertIn(DELIMITED, DEFAULT_ENCODING_REGISTRY.available_encodings())


if __name__ == "__main__":
    unittest.main()
