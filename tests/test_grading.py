"""Tests for weighted grade aggregation."""

import unittest

from studyflow.services.grading import ComponentWeight, letter_grade, summarize_course


class TestLetterGrade(unittest.TestCase):

    def test_ladder_boundaries(self):
        self.assertEqual(letter_grade(100), "A")
        self.assertEqual(letter_grade(90), "A")
        self.assertEqual(letter_grade(89.99), "B")
        self.assertEqual(letter_grade(80), "B")
        self.assertEqual(letter_grade(70), "C")
        self.assertEqual(letter_grade(60), "D")
        self.assertEqual(letter_grade(59.99), "F")
        self.assertEqual(letter_grade(0), "F")


class TestSummarizeCourse(unittest.TestCase):

    def setUp(self):
        self.components = [
            ComponentWeight(component_id=1, max_mark=100, weight_percentage=40),
            ComponentWeight(component_id=2, max_mark=50, weight_percentage=60),
        ]

    def test_weighted_example(self):
        grade = summarize_course(self.components, {1: 80, 2: 45})
        self.assertAlmostEqual(grade.overall_percentage, 86.0)
        self.assertEqual(grade.letter_grade, "B")
        self.assertAlmostEqual(grade.total_weighted_percentage, 86.0)
        self.assertAlmostEqual(grade.graded_weight_percentage, 100.0)

    def test_ungraded_component_counts_as_zero(self):
        grade = summarize_course(self.components, {1: 80})
        self.assertAlmostEqual(grade.overall_percentage, 32.0)
        self.assertEqual(grade.letter_grade, "F")
        self.assertAlmostEqual(grade.graded_weight_percentage, 40.0)
        self.assertAlmostEqual(grade.total_weight_percentage, 100.0)

    def test_explicit_none_is_ungraded(self):
        grade = summarize_course(self.components, {1: 80, 2: None})
        self.assertAlmostEqual(grade.graded_weight_percentage, 40.0)

    def test_weights_not_summing_to_hundred_are_normalised(self):
        components = [
            ComponentWeight(component_id=1, max_mark=10, weight_percentage=20),
            ComponentWeight(component_id=2, max_mark=10, weight_percentage=30),
        ]
        grade = summarize_course(components, {1: 10, 2: 5})
        # (20 + 15) / 50
        self.assertAlmostEqual(grade.overall_percentage, 70.0)
        self.assertEqual(grade.letter_grade, "C")

    def test_no_components(self):
        grade = summarize_course([], {})
        self.assertEqual(grade.overall_percentage, 0.0)
        self.assertEqual(grade.letter_grade, "F")

    def test_zero_total_weight(self):
        components = [ComponentWeight(component_id=1, max_mark=10, weight_percentage=0)]
        grade = summarize_course(components, {1: 10})
        self.assertEqual(grade.overall_percentage, 0.0)


if __name__ == "__main__":
    unittest.main()
