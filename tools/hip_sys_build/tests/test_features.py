from __future__ import annotations

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from hip_sys_build.errors import FeatureCountError, FeatureDecodeError  # noqa: E402
from hip_sys_build.features import (  # noqa: E402
    HIP_PATCH_CATEGORY,
    MODE_PERMISSIVE,
    MODE_STRICT,
    ROCM_VERSION_CATEGORY,
    declared_hip_patch,
    declared_rocm_version,
    enabled_features,
    encode_feature,
    parse_feature_switch,
)
from hip_sys_build.version import Version  # noqa: E402


class ParseFeatureSwitchTests(unittest.TestCase):
    def test_switch_parsing(self) -> None:
        cases = [
            ("CARGO_FEATURE_HIP_41134", "1", "41134"),
            ("CARGO_FEATURE_HIP_42131", "1", "42131"),
            ("CARGO_FEATURE_HIP_00456", "1", "00456"),
            ("CARGO_FEATURE_HIP_42131", "0", None),
            ("OTHER_CARGO_FEATURE_HIP_12345", "1", None),
            ("CARGO_FEATURE_HIP_12345", "", None),
        ]
        for key, value, expected in cases:
            with self.subTest(key=key, value=value):
                switch = parse_feature_switch(key, value, HIP_PATCH_CATEGORY)
                self.assertEqual(switch.token if switch else None, expected)

    def test_categories_do_not_overlap(self) -> None:
        environ = {"CARGO_FEATURE_ROCM_6_2_4": "1", "CARGO_FEATURE_HIP_41134": "1"}
        self.assertEqual([s.feature_name for s in enabled_features(environ, ROCM_VERSION_CATEGORY)], ["rocm_6_2_4"])
        self.assertEqual([s.feature_name for s in enabled_features(environ, HIP_PATCH_CATEGORY)], ["hip_41134"])


class HipPatchSelectionTests(unittest.TestCase):
    def test_single_enabled_switch(self) -> None:
        patch, selection = declared_hip_patch({"CARGO_FEATURE_HIP_41134": "1", "PATH": "/usr/bin"}, MODE_STRICT)
        self.assertEqual(patch, 41134)
        self.assertFalse(selection.from_fallback)
        self.assertEqual(selection.feature_name, "hip_41134")

    def test_multiple_switches_name_all_of_them(self) -> None:
        environ = {"CARGO_FEATURE_HIP_41134": "1", "CARGO_FEATURE_HIP_42131": "1"}
        for mode in (MODE_STRICT, MODE_PERMISSIVE):
            with self.subTest(mode=mode):
                with self.assertRaises(FeatureCountError) as ctx:
                    declared_hip_patch(environ, mode, 41134)
                self.assertIn("hip_41134", str(ctx.exception))
                self.assertIn("hip_42131", str(ctx.exception))

    def test_zero_switches_strict_fails(self) -> None:
        with self.assertRaises(FeatureCountError):
            declared_hip_patch({"CARGO_FEATURE_HIP_41134": "0"}, MODE_STRICT, 41134)

    def test_zero_switches_permissive_falls_back(self) -> None:
        patch, selection = declared_hip_patch({}, MODE_PERMISSIVE, 42131)
        self.assertEqual(patch, 42131)
        self.assertTrue(selection.from_fallback)
        self.assertEqual(selection.feature_name, "hip_42131")

    def test_permissive_without_fallback_fails(self) -> None:
        with self.assertRaises(FeatureCountError):
            declared_hip_patch({}, MODE_PERMISSIVE, None)

    def test_malformed_patch_fails(self) -> None:
        for key in ("CARGO_FEATURE_HIP_41X34", "CARGO_FEATURE_HIP__12345", "CARGO_FEATURE_HIP_1_2"):
            with self.subTest(key=key):
                with self.assertRaises(FeatureDecodeError):
                    declared_hip_patch({key: "1"}, MODE_STRICT)


class RocmVersionSelectionTests(unittest.TestCase):
    def test_decodes_three_components(self) -> None:
        version, _ = declared_rocm_version({"CARGO_FEATURE_ROCM_6_3_0": "1"}, MODE_STRICT)
        self.assertEqual(version, Version(6, 3, 0))

    def test_wrong_arity_fails(self) -> None:
        for key in ("CARGO_FEATURE_ROCM_6_3", "CARGO_FEATURE_ROCM_6_3_0_1", "CARGO_FEATURE_ROCM_6_x_0"):
            with self.subTest(key=key):
                with self.assertRaises(FeatureDecodeError):
                    declared_rocm_version({key: "1"}, MODE_STRICT)

    def test_major_overflow_fails(self) -> None:
        with self.assertRaises(FeatureDecodeError):
            declared_rocm_version({"CARGO_FEATURE_ROCM_256_0_0": "1"}, MODE_STRICT)

    def test_permissive_fallback_is_reencoded(self) -> None:
        version, selection = declared_rocm_version({}, MODE_PERMISSIVE, Version(6, 2, 4))
        self.assertEqual(version, Version(6, 2, 4))
        self.assertEqual(selection.feature_name, "rocm_6_2_4")
        self.assertEqual(encode_feature(ROCM_VERSION_CATEGORY, (6, 2, 4)), "rocm_6_2_4")

    def test_unknown_mode_fails(self) -> None:
        with self.assertRaises(FeatureCountError):
            declared_rocm_version({"CARGO_FEATURE_ROCM_6_3_0": "1"}, "lenient")


if __name__ == "__main__":
    unittest.main()
