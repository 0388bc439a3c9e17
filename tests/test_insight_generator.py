"""Tests for deterministic observations and fallback narratives."""

from insight_generator import (
    describe_answer,
    fallback_checkin_insight,
    fallback_stress_analysis,
    fallback_weekly_insight,
    generate_data_insights,
    needs_immediate_attention,
    quick_mood_response,
    score_band_observation,
)


def _metrics(feeling=7, sleep=6, stress=4, mood="calm"):
    return {"feelingScale": feeling, "sleepQuality": sleep, "stressLevel": stress, "mood": mood}


class TestDataInsights:

    def test_score_bands(self):
        assert "higher range" in score_band_observation(8.0)
        assert "moderate positive" in score_band_observation(6.5)
        assert "middle range" in score_band_observation(5.0)
        assert "lower range" in score_band_observation(4.9)

    def test_shape(self):
        out = generate_data_insights(7.4, _metrics(8, 6, 3))
        assert out["wellnessScore"] == 7.4
        assert set(out["scoreCalculation"]) == {"feelingScale", "sleepQuality", "stressLevel"}
        assert out["note"] == "These are data observations, not medical assessments"

    def test_threshold_observations(self):
        obs = generate_data_insights(4.0, _metrics(feeling=8, sleep=3, stress=9))["observations"]
        assert any("stress level" in o for o in obs)
        assert any("sleep quality" in o for o in obs)
        assert any("feeling scale" in o for o in obs)

    def test_quiet_day_has_only_band(self):
        obs = generate_data_insights(5.5, _metrics(feeling=5, sleep=6, stress=5))["observations"]
        assert len(obs) == 1


class TestFallbacks:

    def test_checkin_mentions_mood_and_flags(self):
        text = fallback_checkin_insight(_metrics(feeling=8, sleep=3, stress=9, mood="anxious"))
        assert "anxious" in text
        assert "9/10" in text
        assert "3/10" in text
        assert text.endswith("personal data.")

    def test_stress_trends_are_top_three_strong_answers(self):
        answers = {1: 5, 2: 4, 3: 10, 4: 5, 5: 1, 6: 2}
        out = fallback_stress_analysis(9, "Very High", answers)
        assert len(out["trends"]) == 3
        # ties on normalized value break by question id
        assert out["trends"][0].startswith("overall feeling")
        assert "9/10" in out["summary"]
        assert "Very High" in out["summary"]

    def test_stress_no_strong_signal(self):
        out = fallback_stress_analysis(0, "Very Low", {1: 1, 3: 2})
        assert out["trends"] == []
        assert "None of your answers" in out["summary"]

    def test_describe_answer(self):
        assert describe_answer(3, 7) == "7/10"
        assert describe_answer(4, 5) == "Overwhelmed"
        assert describe_answer(2, 9) == "9"

    def test_weekly_fallback_mentions_average_and_trend(self):
        analytics = {
            "avgWellnessScore": 4.2,
            "avgStressLevel": 7.5,
            "avgSleepQuality": 4.0,
            "wellnessScoreTrend": "declining",
        }
        text = fallback_weekly_insight(analytics)
        assert "4.2/10" in text
        assert "declining" in text
        assert "stress levels have been elevated" in text
        assert "sleep quality" in text


class TestQuickMood:

    def test_low_intensity_response(self):
        text = quick_mood_response("sad", 2, trigger="work", needs_support=True)
        assert "work" in text
        assert "difficult time" in text
        assert "mental health professional" in text

    def test_high_intensity_response(self):
        assert "positive emotions" in quick_mood_response("happy", 8)

    def test_needs_attention(self):
        assert needs_immediate_attention("Sad", 3)
        assert not needs_immediate_attention("sad", 4)
        assert not needs_immediate_attention("happy", 1)
        assert needs_immediate_attention("happy", 9, needs_support=True)
