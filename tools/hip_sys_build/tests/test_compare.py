from __future__ import annotations

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from hip_sys_build.compare import (  # noqa: E402
    COMPATIBLE,
    COMPATIBLE_WITH_WARNING,
    DRIFT_BOTH,
    DRIFT_MINOR,
    DRIFT_PATCH,
    INCOMPATIBLE,
    combine_drift,
    combined_advisory,
    compare_versions,
    drift_advisory,
    incompatibility_message,
)
from hip_sys_build.version import Version  # noqa: E402


class CompareVersionsTests(unittest.TestCase):
    def test_classification(self) -> None:
        detected = Version(6, 2, 4)
        cases = [
            (Version(6, 2, 4), COMPATIBLE, None),
            (Version(6, 2, 1), COMPATIBLE_WITH_WARNING, DRIFT_PATCH),
            (Version(6, 3, 0), COMPATIBLE_WITH_WARNING, DRIFT_MINOR),
            (Version(6, 1, 4), COMPATIBLE_WITH_WARNING, DRIFT_MINOR),
            (Version(7, 0, 0), INCOMPATIBLE, None),
            (Version(5, 2, 4), INCOMPATIBLE, None),
        ]
        for declared, status, drift in cases:
            with self.subTest(declared=str(declared)):
                result = compare_versions(declared, detected)
                self.assertEqual(result.status, status)
                self.assertEqual(result.drift, drift)
                self.assertEqual(result.is_compatible, status != INCOMPATIBLE)

    def test_advisory_only_for_drift(self) -> None:
        self.assertIsNone(drift_advisory(compare_versions(Version(6, 2, 4), Version(6, 2, 4)), "ROCm"))
        advisory = drift_advisory(compare_versions(Version(6, 2, 1), Version(6, 2, 4)), "ROCm")
        self.assertIn("Patch version is different", advisory)
        self.assertIn("6.2.1", advisory)
        self.assertIn("6.2.4", advisory)

    def test_incompatibility_message_names_both_versions(self) -> None:
        message = incompatibility_message(compare_versions(Version(7, 0, 0), Version(6, 2, 4)), "ROCm")
        self.assertIn("7.0.0", message)
        self.assertIn("6.2.4", message)


class CombinedDriftTests(unittest.TestCase):
    def test_minor_and_patch_across_components(self) -> None:
        rocm = compare_versions(Version(6, 3, 0), Version(6, 2, 4))
        hip = compare_versions(Version(6, 2, 42131), Version(6, 2, 41134))
        self.assertEqual(combine_drift([rocm, hip]), DRIFT_BOTH)
        advisory = combined_advisory({"ROCm": rocm, "HIP": hip})
        self.assertTrue(advisory.startswith(DRIFT_BOTH))
        self.assertIn("HIP bindings 6.2.42131", advisory)

    def test_single_drift_keeps_its_label(self) -> None:
        rocm = compare_versions(Version(6, 2, 4), Version(6, 2, 4))
        hip = compare_versions(Version(6, 2, 42131), Version(6, 2, 41134))
        self.assertEqual(combine_drift([rocm, hip]), DRIFT_PATCH)
        self.assertIn("HIP", combined_advisory({"ROCm": rocm, "HIP": hip}))

    def test_no_drift(self) -> None:
        rocm = compare_versions(Version(6, 2, 4), Version(6, 2, 4))
        self.assertIsNone(combine_drift([rocm]))
        self.assertIsNone(combined_advisory({"ROCm": rocm}))


if __name__ == "__main__":
    unittest.main()
