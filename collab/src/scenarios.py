"""Static test-scenario library shipped in training packages.

Scenarios are reference data, never derived from a corpus, so that two
packages built from the same corpus with the same library version are
identical. Bump ``SCENARIO_LIBRARY_VERSION`` whenever the content
changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

SCENARIO_LIBRARY_VERSION = "1.0.0"


@dataclass(frozen=True)
class ScenarioCase:
    """One input a tester should try.

    Attributes:
        input: Text to type into the assistant.
        description: What the case exercises.
        expected_intent: Intent the input should map to, when defined.
    """

    input: str
    description: str
    expected_intent: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"input": self.input, "description": self.description}
        if self.expected_intent is not None:
            result["expectedIntent"] = self.expected_intent
        return result


@dataclass(frozen=True)
class ScenarioGroup:
    """Scenarios exercising one intent category."""

    category: str
    scenarios: tuple[ScenarioCase, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "scenarios": [s.to_dict() for s in self.scenarios],
        }


@dataclass(frozen=True)
class ScenarioLibrary:
    """The versioned set of test scenarios.

    Attributes:
        version: Library version.
        basic_interactions: Groups per intent category.
        edge_cases: Vague or ambiguous inputs.
        creative_tests: Unusual but legitimate phrasings.
    """

    version: str
    basic_interactions: tuple[ScenarioGroup, ...]
    edge_cases: tuple[ScenarioCase, ...]
    creative_tests: tuple[ScenarioCase, ...]

    @property
    def intents(self) -> list[str]:
        """Expected intents covered by the basic interactions, in order."""
        seen: list[str] = []
        for group in self.basic_interactions:
            for case in group.scenarios:
                if case.expected_intent and case.expected_intent not in seen:
                    seen.append(case.expected_intent)
        return seen

    def to_dict(self) -> dict[str, Any]:
        return {
            "basicInteractions": [g.to_dict() for g in self.basic_interactions],
            "edgeCases": [c.to_dict() for c in self.edge_cases],
            "creativeTests": [c.to_dict() for c in self.creative_tests],
        }


SCENARIO_LIBRARY = ScenarioLibrary(
    version=SCENARIO_LIBRARY_VERSION,
    basic_interactions=(
        ScenarioGroup(
            category="Expense entry",
            scenarios=(
                ScenarioCase(
                    input="I spent €25 on transport",
                    expected_intent="addExpense",
                    description="Expense with amount and category",
                ),
                ScenarioCase(
                    input="Add a €15 expense for lunch",
                    expected_intent="addExpense",
                    description="Different phrasing",
                ),
                ScenarioCase(
                    input="I paid €50 for groceries",
                    expected_intent="addExpense",
                    description="Specific category",
                ),
            ),
        ),
        ScenarioGroup(
            category="Financial analysis",
            scenarios=(
                ScenarioCase(
                    input="How is my budget doing?",
                    expected_intent="financialAnalysis",
                    description="General analysis",
                ),
                ScenarioCase(
                    input="Give me an overview of my situation",
                    expected_intent="financialAnalysis",
                    description="Alternative phrasing",
                ),
                ScenarioCase(
                    input="Analyze my spending this month",
                    expected_intent="financialAnalysis",
                    description="Time-bounded analysis",
                ),
            ),
        ),
        ScenarioGroup(
            category="Personalized advice",
            scenarios=(
                ScenarioCase(
                    input="Give me tips to save money",
                    expected_intent="advice",
                    description="Request for advice",
                ),
                ScenarioCase(
                    input="I need help with my budget",
                    expected_intent="advice",
                    description="Request for help",
                ),
                ScenarioCase(
                    input="What do you recommend?",
                    expected_intent="advice",
                    description="Request for a recommendation",
                ),
            ),
        ),
        ScenarioGroup(
            category="Predictions",
            scenarios=(
                ScenarioCase(
                    input="How will I end the month?",
                    expected_intent="prediction",
                    description="End-of-month prediction",
                ),
                ScenarioCase(
                    input="Give me a forecast",
                    expected_intent="prediction",
                    description="General forecast",
                ),
            ),
        ),
    ),
    edge_cases=(
        ScenarioCase(input="I spent a lot of money", description="Imprecise amount"),
        ScenarioCase(input="My budget is complicated", description="Vague request"),
        ScenarioCase(input="I don't know what to do", description="General call for help"),
    ),
    creative_tests=(
        ScenarioCase(
            input="Could you help me manage my finances?",
            description="Polite phrasing",
        ),
        ScenarioCase(
            input="I have a problem with my expenses",
            description="Problem statement",
        ),
        ScenarioCase(
            input="How can I improve my situation?",
            description="Improvement request",
        ),
    ),
)


# ===================================================================
# Tester instructions
# ===================================================================

PACKAGE_INSTRUCTIONS: dict[str, Any] = {
    "title": "Assistant testing guide",
    "description": "Help us improve the assistant by trying these scenarios",
    "steps": [
        "1. Open the assistant (button at the bottom right)",
        "2. Try the interactions listed below",
        "3. Rate every answer with 👍 👌 👎",
        "4. Export your data and send it back to us",
    ],
}

EXPORT_INSTRUCTIONS: dict[str, Any] = {
    "title": "How to export your data",
    "steps": [
        "1. Open the assistant",
        "2. Click the 📊 icon in the header",
        '3. Click "Export data"',
        "4. Send the generated JSON file",
    ],
}

TESTING_STEPS: tuple[str, ...] = (
    "1. Open the application",
    "2. Click the assistant button (bottom right)",
    "3. Try the interactions listed below",
    "4. Rate every answer with 👍 👌 👎",
    "5. Export your data and send it back to us",
)

GUIDE_EXPORT_STEPS: tuple[str, ...] = (
    "1. In the assistant, click the 📊 icon",
    '2. Click "Export data"',
    "3. The JSON file is downloaded",
    "4. Send the file by email or message",
)
