# ABOUTME: Tests the skill-score variant with official bonus and trend multiplier.
# ABOUTME: Uses a fixed clock so decay and trend windows are deterministic.

from datetime import datetime, timedelta, timezone
import math
import unittest

from src.common.schemas import AnswerEvent, SkillScoreResult
from src.prep_score.skill import compute_skill_score

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _answers(count: int, correct: bool, days_ago: float = 0.0, official: bool = False):
    ts = NOW - timedelta(days=days_ago)
    return [AnswerEvent(f"q{i}", correct, ts, is_official=official) for i in range(count)]


class SkillScoreTest(unittest.TestCase):
    def test_empty_history_is_neutral(self):
        result = compute_skill_score([], now=NOW)
        self.assertEqual(result, SkillScoreResult(score=0.0, accuracy_weighted=0.0, volume_factor=0.0, trend_multiplier=1.0))

    def test_single_answer_is_damped_by_low_activity_safeguard(self):
        result = compute_skill_score(_answers(1, True), now=NOW)
        volume = 1 - math.exp(-1 / 300)
        expected = 100 * volume * math.sqrt(1 / 50)
        self.assertAlmostEqual(result.score, round(expected, 2), places=6)
        self.assertEqual(result.accuracy_weighted, 1.0)
        self.assertEqual(result.volume_factor, 0.0033)
        self.assertEqual(result.trend_multiplier, 1.0)

    def test_official_answers_weigh_more(self):
        custom = compute_skill_score(_answers(1, True), now=NOW)
        official = compute_skill_score(_answers(1, True, official=True), now=NOW)
        self.assertEqual(official.volume_factor, 0.0042)
        self.assertGreater(official.score, custom.score)

    def test_no_safeguard_above_activity_threshold(self):
        result = compute_skill_score(_answers(200, True), now=NOW)
        self.assertAlmostEqual(result.score, 48.66, places=6)

    def test_improving_trend_is_capped(self):
        answers = _answers(10, True) + _answers(10, False, days_ago=20)
        result = compute_skill_score(answers, now=NOW)
        self.assertEqual(result.trend_multiplier, 1.1)

    def test_declining_trend_is_floored(self):
        answers = _answers(10, False) + _answers(10, True, days_ago=20)
        result = compute_skill_score(answers, now=NOW)
        self.assertEqual(result.trend_multiplier, 0.8)

    def test_trend_stays_neutral_without_old_history(self):
        result = compute_skill_score(_answers(30, True), now=NOW)
        self.assertEqual(result.trend_multiplier, 1.0)

    def test_score_is_bounded(self):
        answers = _answers(5000, True, official=True)
        result = compute_skill_score(answers, now=NOW)
        self.assertLessEqual(result.score, 100.0)
        self.assertGreaterEqual(result.score, 0.0)

    def test_future_answers_weigh_like_answers_made_now(self):
        present = compute_skill_score(_answers(1, True), now=NOW)
        future = compute_skill_score(_answers(1, True, days_ago=-5), now=NOW)
        self.assertEqual(future, present)
        self.assertEqual(future.volume_factor, 0.0033)

        official = compute_skill_score(_answers(1, True, days_ago=-5, official=True), now=NOW)
        self.assertEqual(official.volume_factor, 0.0042)

        many = compute_skill_score(_answers(200, True, days_ago=-30), now=NOW)
        self.assertAlmostEqual(many.score, 48.66, places=6)
