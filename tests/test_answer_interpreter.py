import unittest

from services import answer_interpreter as ai


class TestBuyerIntent(unittest.TestCase):
    def test_first_match_wins(self):
        self.assertEqual(ai.buyer_intent("I'm buying my first car"), "first_time")
        self.assertEqual(ai.buyer_intent("My lease is ending in March"), "lease_end")
        self.assertEqual(ai.buyer_intent("Looking to upgrade"), "upgrading")
        self.assertEqual(ai.buyer_intent("Just browsing"), "exploring")

    def test_case_insensitive_and_empty(self):
        self.assertEqual(ai.buyer_intent("FIRST CAR EVER"), "first_time")
        self.assertEqual(ai.buyer_intent(""), "exploring")


class TestBudgetAmount(unittest.TestCase):
    def test_around(self):
        self.assertEqual(ai.budget_amount("around $350 a month"), 350)

    def test_range_is_averaged(self):
        self.assertEqual(ai.budget_amount("$300-500 range"), 400)
        self.assertEqual(ai.budget_amount("400 to 600"), 500)

    def test_thousands_separator(self):
        self.assertEqual(ai.budget_amount("$2,000"), 2000)

    def test_no_number(self):
        self.assertEqual(ai.budget_amount("no idea"), 0)
        self.assertEqual(ai.budget_amount("nothing right now"), 0)


class TestCreditTier(unittest.TestCase):
    def test_keyword_and_literal_score(self):
        result = ai.credit_tier("Around 700, pretty good")
        self.assertEqual(result.level, "good")
        self.assertEqual(result.confidence, "high")
        self.assertFalse(result.needs_reassurance)

    def test_rebuilding(self):
        result = ai.credit_tier("I'm rebuilding it")
        self.assertEqual(result.level, "building")
        self.assertTrue(result.needs_reassurance)

    def test_unsure(self):
        self.assertEqual(ai.credit_tier("not sure honestly").level, "unsure")

    def test_numeric_band(self):
        self.assertEqual(ai.credit_tier("about 690").level, "fair")
        self.assertEqual(ai.credit_tier("like 610").level, "building")

    def test_default(self):
        result = ai.credit_tier("")
        self.assertEqual((result.level, result.confidence), ("fair", "medium"))


class TestTradeIn(unittest.TestCase):
    def test_no_mention(self):
        self.assertFalse(ai.trade_in_mention("nothing right now").has_trade_in)

    def test_mention(self):
        result = ai.trade_in_mention("About $1,000 and I'm trading in my 2015 Corolla")
        self.assertTrue(result.has_trade_in)
        self.assertEqual(result.vehicle, "2015 Corolla")

    def test_details_with_value(self):
        result = ai.trade_in_details("2016 Civic, maybe $8,000")
        self.assertTrue(result.has_trade_in)
        self.assertEqual(result.vehicle, "2016 Civic")
        self.assertEqual(result.estimated_value, 8000)

    def test_details_thousands_suffix(self):
        self.assertEqual(ai.trade_in_details("2017 Accord, around $12k").estimated_value, 12000)

    def test_details_without_value(self):
        result = ai.trade_in_details("an old truck")
        self.assertTrue(result.has_trade_in)
        self.assertIsNone(result.estimated_value)


class TestLifestyle(unittest.TestCase):
    def test_family(self):
        result = ai.lifestyle_intent("Family trips on weekends")
        self.assertEqual(result.primary_use, "family")
        self.assertTrue(result.mentions.family)
        self.assertEqual(result.keywords, ["family", "trips", "weekends"])

    def test_later_checks_override(self):
        # commute < family < work < adventure
        self.assertEqual(ai.lifestyle_intent("Daily commute to work").primary_use, "work")
        self.assertEqual(
            ai.lifestyle_intent("Camping and road trips with the kids").primary_use, "adventure"
        )

    def test_default(self):
        result = ai.lifestyle_intent("I mostly drive in the city")
        self.assertEqual(result.primary_use, "general")
        self.assertTrue(result.mentions.city)


class TestPriorities(unittest.TestCase):
    def test_payment_first(self):
        result = ai.priority_intent("Payments under $400")
        self.assertEqual(result.top_priority, "payment")
        self.assertEqual(result.intensity, "important")

    def test_intensity(self):
        result = ai.priority_intent("Best fuel economy is a must")
        self.assertEqual(result.top_priority, "fuel")
        self.assertEqual(result.intensity, "must_have")
        self.assertEqual(ai.priority_intent("I would prefer something safe").intensity, "nice_to_have")

    def test_ranking_order(self):
        result = ai.priority_intent("safety and good gas mileage")
        self.assertEqual(result.top_priority, "fuel")
        self.assertEqual(result.secondary_priorities, ["safety"])

    def test_default(self):
        self.assertEqual(ai.priority_intent("").top_priority, "reliability")


class TestModelInterest(unittest.TestCase):
    def test_favorites(self):
        result = ai.model_interest("Love the RAV4")
        self.assertEqual(result.familiarity, "has_favorites")
        self.assertEqual(result.models, ["RAV4"])

    def test_longer_name_wins(self):
        self.assertEqual(ai.model_interest("the GR Corolla looks fun").models, ["GR Corolla"])

    def test_open(self):
        result = ai.model_interest("Totally open")
        self.assertEqual(result.familiarity, "open")
        self.assertEqual(result.models, [])


class TestInterpretDispatch(unittest.TestCase):
    def test_dispatch(self):
        self.assertEqual(ai.interpret("budget_monthly", "around $350"), 350)

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            ai.interpret("horoscope", "leo")


if __name__ == "__main__":
    unittest.main()
