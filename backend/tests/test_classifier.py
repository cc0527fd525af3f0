"""
Tests for the rule-based turn classifier: search gating, search mode,
request kind, meal type and reply words.
"""
import pytest

from foodlog.classifier import (
    choose_search_mode,
    detect_meal_type,
    detect_request_kind,
    detect_restaurant,
    extract_weight_kg,
    infer_meal_type_by_hour,
    is_affirmative,
    is_cancel,
    is_exercise_item,
    is_meal_type_answer,
    is_question,
    should_search,
    split_restaurant,
)
from foodlog.models.entries import MealType, RequestKind, SearchMode


# ===== should_search ==========================================================

class TestShouldSearch:

    def test_big_mac_question(self):
        assert should_search("What's a Big Mac?") is True

    def test_small_talk_does_not_search(self):
        assert should_search("ok thanks") is False

    def test_food_vocabulary(self):
        assert should_search("I had eggs for breakfast") is True

    def test_plural_vocabulary(self):
        assert should_search("6 nuggets") is True

    def test_info_marker_without_food(self):
        assert should_search("show me something light") is True

    def test_question_mark_alone(self):
        assert should_search("is that a lot?") is True

    def test_words_containing_keywords_do_not_match(self):
        # "tea" inside "thanks", "ate" inside "later"
        assert should_search("thanks, talk later") is False

    @pytest.mark.parametrize("value", ["", None, 42])
    def test_never_raises(self, value):
        assert should_search(value) is False


# ===== restaurants / search mode ==============================================

class TestRestaurant:

    def test_detects_brand_variants(self):
        assert detect_restaurant("Big Mac from maccas") == "McDonald's"
        assert detect_restaurant("hungry jacks whopper") == "Hungry Jack's"
        assert detect_restaurant("homemade soup") is None

    def test_split_removes_brand(self):
        brand, rest = split_restaurant("healthy options at KFC")
        assert brand == "KFC"
        assert rest == "healthy options at"

    def test_menu_cue_selects_restaurant_mode(self):
        assert choose_search_mode("healthy options at KFC") == SearchMode.RESTAURANT_MENU

    def test_brand_without_cue_is_nutrition_mode(self):
        assert choose_search_mode("I had a KFC zinger") == SearchMode.NUTRITION

    def test_cue_without_brand_is_nutrition_mode(self):
        assert choose_search_mode("healthy options for lunch") == SearchMode.NUTRITION


# ===== request kind ===========================================================

class TestRequestKind:

    def test_weight(self):
        assert detect_request_kind("I weigh 80kg") == RequestKind.WEIGHT
        assert detect_request_kind("My weight is 79.5 kg today") == RequestKind.WEIGHT

    def test_kg_without_weight_word_is_food(self):
        assert detect_request_kind("1 kg of potatoes") == RequestKind.FOOD

    def test_exercise(self):
        assert detect_request_kind("walked for 30 minutes") == RequestKind.EXERCISE
        assert detect_request_kind("I went running") == RequestKind.EXERCISE
        assert detect_request_kind("45 min yoga") == RequestKind.EXERCISE

    def test_food_is_default(self):
        assert detect_request_kind("I had a banana") == RequestKind.FOOD
        assert detect_request_kind("") == RequestKind.FOOD

    def test_extract_weight(self):
        assert extract_weight_kg("I weigh 79.5 kg") == 79.5
        assert extract_weight_kg("no number here") is None


# ===== questions ==============================================================

class TestIsQuestion:

    def test_question_forms(self):
        assert is_question("How many calories in an apple") is True
        assert is_question("banana calories?") is True
        assert is_question("suggest a low calorie lunch") is True

    def test_log_statement_is_not_question(self):
        assert is_question("chicken sandwich") is False
        assert is_question("I had 2 eggs") is False


# ===== meal type ==============================================================

class TestMealType:

    @pytest.mark.parametrize("text,expected", [
        ("lunch", MealType.LUNCH),
        ("had this for dinner", MealType.DINNER),
        ("Breakfast", MealType.BREAKFAST),
        ("a snack", MealType.SNACK),
        ("brunch", MealType.LUNCH),
        ("dessert", MealType.EVENING_SNACK),
        ("late night snack", MealType.EVENING_SNACK),
        ("tea time", MealType.AFTERNOON_SNACK),
        ("post-workout", MealType.SNACK),
        ("lunch snack", MealType.AFTERNOON_SNACK),
        ("breakfast snack", MealType.MORNING_SNACK),
    ])
    def test_detect(self, text, expected):
        assert detect_meal_type(text) == expected

    def test_no_meal_keyword(self):
        assert detect_meal_type("chicken sandwich") is None
        assert detect_meal_type("") is None

    @pytest.mark.parametrize("hour,expected", [
        (7, MealType.BREAKFAST),
        (12, MealType.LUNCH),
        (15, MealType.SNACK),
        (19, MealType.DINNER),
        (23, MealType.SNACK),
        (3, MealType.SNACK),
    ])
    def test_time_of_day_fallback(self, hour, expected):
        assert infer_meal_type_by_hour(hour) == expected

    @pytest.mark.parametrize("text", ["lunch", "Dinner.", "it was lunch", "for a morning snack", "brunch please"])
    def test_bare_meal_type_answer(self, text):
        assert is_meal_type_answer(text) is True

    @pytest.mark.parametrize("text", ["actually just toast", "2 eggs for breakfast", "pasta for dinner", ""])
    def test_new_request_is_not_a_meal_type_answer(self, text):
        assert is_meal_type_answer(text) is False


# ===== reply words ============================================================

class TestReplyWords:

    def test_affirmative(self):
        assert is_affirmative("yes") is True
        assert is_affirmative("Y") is True
        assert is_affirmative(" Yes! ") is True
        assert is_affirmative("yes please") is False
        assert is_affirmative("yesterday") is False

    def test_cancel(self):
        assert is_cancel("no") is True
        assert is_cancel("N.") is True
        assert is_cancel("cancel") is True
        assert is_cancel("nope") is False


# ===== commit-time exercise heuristic =========================================

class TestExerciseItem:

    @pytest.mark.parametrize("name", ["30 min walk", "running", "45 minutes cycling", "gym session", "Yoga"])
    def test_exercise_names(self, name):
        assert is_exercise_item(name) is True

    @pytest.mark.parametrize("name", ["Big Mac", "minestrone soup", "2 eggs", "walnut"])
    def test_food_names(self, name):
        assert is_exercise_item(name) is False
