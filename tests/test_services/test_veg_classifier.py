from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vegscout.diagnostics import DiagnosticLog
from vegscout.exceptions.custom import AIErrorKind, AIProviderError
from vegscout.schemas.analysis import AnalysisMethod, Friendliness
from vegscout.schemas.menu import MenuItem
from vegscout.services.veg_classifier import VegClassifier

NOT_VEGETARIAN = {"isVegetarianRestaurant": False, "confidence": 0.9, "reasoning": "Serves steak"}


def _items(*names: str) -> list[MenuItem]:
    return [MenuItem(name=n, price="$10.00") for n in names]


def _claude(restaurant_check=NOT_VEGETARIAN, batch_side_effect=None):
    claude = MagicMock()
    claude.analyze = AsyncMock(return_value=restaurant_check)
    claude.analyze_strict = AsyncMock(side_effect=batch_side_effect)
    return claude


def _batch_reply(*rows, tier="good", confidence=0.8):
    return {
        "vegetarianItems": [
            {"name": name, "category": "main", "confidence": 0.9, "isVegan": False} for name in rows
        ],
        "restaurantVegFriendliness": tier,
        "confidence": confidence,
        "recommendations": ["Ask for the tofu option"],
    }


@pytest.mark.asyncio
async def test_empty_items_short_circuit():
    claude = _claude()
    outcome = await VegClassifier(claude).classify([], "Anywhere")

    assert outcome.batches == []
    assert outcome.method == AnalysisMethod.keyword
    claude.analyze.assert_not_awaited()


@pytest.mark.asyncio
async def test_fully_vegetarian_shortcut():
    claude = _claude(restaurant_check={"isVegetarianRestaurant": True, "confidence": 0.92})
    items = _items("Vegan Pad Thai", "Tofu Scramble")

    outcome = await VegClassifier(claude).classify(items, "Green Leaf Vegan Kitchen")

    assert outcome.fully_vegetarian
    assert outcome.method == AnalysisMethod.ai_analysis
    batch = outcome.batches[0]
    assert batch.friendliness == Friendliness.excellent
    assert [i.confidence for i in batch.items] == [0.95, 0.95]
    assert batch.items[0].is_vegan
    assert batch.items[1].notes == "From fully vegetarian restaurant"
    claude.analyze_strict.assert_not_awaited()


@pytest.mark.asyncio
async def test_low_confidence_vegetarian_check_is_not_trusted():
    claude = _claude(
        restaurant_check={"isVegetarianRestaurant": True, "confidence": 0.6},
        batch_side_effect=[_batch_reply("Tofu Scramble")],
    )

    outcome = await VegClassifier(claude).classify(_items("Tofu Scramble", "Ham Omelette"), "Corner Diner")

    assert not outcome.fully_vegetarian
    assert claude.analyze_strict.await_count == 1


@pytest.mark.asyncio
async def test_restaurant_check_is_deterministic():
    claude = _claude(restaurant_check={"isVegetarianRestaurant": True, "confidence": 0.9})
    classifier = VegClassifier(claude)
    items = _items("Lentil Soup", "Seitan Wings")

    first = await classifier.check_vegetarian_restaurant("Plant Power", items)
    second = await classifier.check_vegetarian_restaurant("Plant Power", items)

    assert first.is_vegetarian_restaurant == second.is_vegetarian_restaurant
    for call in claude.analyze.call_args_list:
        assert call.kwargs["temperature"] == 0
    assert claude.analyze.call_args_list[0].args == claude.analyze.call_args_list[1].args


@pytest.mark.asyncio
async def test_batches_run_in_groups_with_pause():
    items = _items("Item One", "Item Two", "Item Three", "Item Four", "Item Five", "Item Six", "Item Seven")
    claude = _claude(batch_side_effect=lambda *a, **kw: _batch_reply())
    classifier = VegClassifier(claude, batch_size=2, parallelism=2, group_pause=1.5)

    with patch("vegscout.services.veg_classifier.asyncio.sleep", new_callable=AsyncMock) as sleep:
        outcome = await classifier.classify(items, "Diner")

    assert claude.analyze_strict.await_count == 4
    assert [b.total_items for b in outcome.batches] == [2, 2, 2, 1]
    sleep.assert_awaited_once_with(1.5)
    for call in claude.analyze_strict.call_args_list:
        assert call.kwargs["temperature"] == 0


@pytest.mark.asyncio
async def test_batch_retries_transient_errors():
    claude = _claude(batch_side_effect=[
        AIProviderError(AIErrorKind.timeout, "slow"),
        _batch_reply("Tofu Scramble"),
    ])
    classifier = VegClassifier(claude, max_retries=2, retry_delay=0.5)

    with patch("vegscout.services.veg_classifier.asyncio.sleep", new_callable=AsyncMock) as sleep:
        outcome = await classifier.classify(_items("Tofu Scramble", "Ham Omelette"), "Diner")

    assert outcome.method == AnalysisMethod.ai_analysis
    assert [i.name for i in outcome.batches[0].items] == ["Tofu Scramble"]
    sleep.assert_awaited_once_with(0.5)


@pytest.mark.asyncio
async def test_payload_too_large_is_not_retried():
    claude = _claude(batch_side_effect=AIProviderError(AIErrorKind.payload_too_large, "too long"))

    with patch("vegscout.services.veg_classifier.asyncio.sleep", new_callable=AsyncMock):
        outcome = await VegClassifier(claude, max_retries=2).classify(_items("Veggie Wrap"), "Diner")

    assert claude.analyze_strict.await_count == 1
    assert outcome.method == AnalysisMethod.keyword


@pytest.mark.asyncio
async def test_all_batches_failing_falls_back_to_keywords():
    claude = _claude(batch_side_effect=AIProviderError(AIErrorKind.malformed_response, "no json"))
    diag = DiagnosticLog()
    items = _items("Veggie Wrap", "Chicken Wrap", "Mushroom Soup")

    with patch("vegscout.services.veg_classifier.asyncio.sleep", new_callable=AsyncMock):
        outcome = await VegClassifier(claude, max_retries=1).classify(items, "Diner", diag)

    assert claude.analyze_strict.await_count == 2
    assert outcome.method == AnalysisMethod.keyword
    batch = outcome.batches[0]
    assert [i.name for i in batch.items] == ["Veggie Wrap", "Mushroom Soup"]
    assert batch.confidence == 0.6
    assert batch.total_items == 3
    assert any("ai-batches -> Failed" in line for line in diag.entries())


@pytest.mark.asyncio
async def test_partial_batch_failure_keeps_successful_batches():
    claude = _claude(batch_side_effect=[
        _batch_reply("Tofu Bowl"),
        AIProviderError(AIErrorKind.invalid_credentials, "bad key"),
    ])

    outcome = await VegClassifier(claude, batch_size=1, parallelism=1, group_pause=0).classify(
        _items("Tofu Bowl", "Pork Bun"), "Diner",
    )

    assert outcome.method == AnalysisMethod.ai_analysis
    ok, failed = outcome.batches
    assert not ok.failed
    assert failed.failed
    assert failed.confidence is None
    assert failed.friendliness == Friendliness.unknown
    assert failed.total_items == 1


@pytest.mark.asyncio
async def test_without_ai_uses_keywords():
    outcome = await VegClassifier(claude=None).classify(
        _items("Vegan Chili", "Beef Chili", "Falafel Plate", "Fries"), "Diner",
    )

    assert outcome.method == AnalysisMethod.keyword
    batch = outcome.batches[0]
    assert [i.name for i in batch.items] == ["Vegan Chili", "Falafel Plate"]
    assert batch.items[0].is_vegan
    assert batch.friendliness == Friendliness.fair


@pytest.mark.asyncio
async def test_ai_rows_are_truncated_and_post_filtered():
    reply = _batch_reply("Tofu Bowl", "Chicken Tikka", "Appetizers", "Extra Row")
    claude = _claude(batch_side_effect=[reply])
    items = _items("Tofu Bowl", "Chicken Tikka", "Samosa")

    outcome = await VegClassifier(claude).classify(items, "Diner")

    batch = outcome.batches[0]
    # three input items allow at most three rows, of which two fail the post filter
    assert [i.name for i in batch.items] == ["Tofu Bowl"]
    assert batch.friendliness == Friendliness.good
    assert batch.recommendations == ["Ask for the tofu option"]
