"""
Cooking Vocabulary Module
=========================
Immutable keyword tables shared by every analysis component.

The tables are plain data: a frozen ``Vocabulary`` value is handed to each
component at construction time, so tests can swap or extend vocabularies
without leaking state between runs.

This module provides:
- The ``Vocabulary`` dataclass and the ``DEFAULT_VOCABULARY`` instance
- Text normalization (case and diacritic folding)
- Gerund/base-verb stemming used for action matching
- Ingredient name canonicalization (plural -> singular)

Usage:
    from recipe_timeline.vocabulary import DEFAULT_VOCABULARY, normalize_text

    vocab = DEFAULT_VOCABULARY.extend(ingredient_terms=("yuzu",))
    vocab.action_bucket("Chopping")   # -> "cutting"
"""

import unicodedata
from dataclasses import dataclass, fields, replace
from typing import Dict, Optional, Tuple

Pairs = Tuple[Tuple[str, str], ...]
Groups = Tuple[Tuple[str, Tuple[str, ...]], ...]


# =============================================================================
# TEXT NORMALIZATION
# =============================================================================

def normalize_text(text: str) -> str:
    """Lowercase, strip diacritics and collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(folded.lower().split())


def stem_word(word: str) -> str:
    """
    Reduce a verb form to a crude stem so gerunds match their base verb.

    "cutting" -> "cut", "slicing"/"slice" -> "slic", "grilling" -> "grill".
    """
    word = normalize_text(word)
    if word.endswith("ing") and len(word) > 4:
        word = word[:-3]
        # chopp -> chop, stirr -> stir (but keep grill, dress, fizz)
        if len(word) >= 4 and word[-1] == word[-2] and word[-1] not in "lsz":
            word = word[:-1]
    if word.endswith("e") and len(word) > 3:
        word = word[:-1]
    return word


def stem_phrase(text: str) -> str:
    return " ".join(stem_word(w) for w in normalize_text(text).split())


# =============================================================================
# VOCABULARY
# =============================================================================

@dataclass(frozen=True)
class Vocabulary:
    """
    Read-only keyword tables for ingredients, tools and actions.

    Attributes:
        ingredient_terms / tool_terms / action_terms: primary keyword lists
        food_indicators / tool_indicators: descriptive words that mark a
            label as food or equipment ("chopped", "cookware")
        ingredient_hints / tool_hints / action_hints: labeler category tags
            accepted as evidence for a category
        loose_*_terms: secondary lists used only in high-density mode
        loose_action_map: loose action term -> interpreted action
        ingredient_categories / tool_types: sub-tag tables
        action_buckets: semantic action buckets, keyed by stem
        related_tools: verb stem -> tools implied by that verb
        phase_keywords: (phase, keywords) in identification order
        phase_descriptions: phase -> display description
        plural_forms: plural -> singular lookup
        default_amounts: canonical ingredient -> default quantity label
        discourse_markers: transcript words that introduce a step
        state_stems: progression state -> action stems implying it
    """

    ingredient_terms: Tuple[str, ...] = (
        "vegetable", "fruit", "meat", "fish", "seafood", "dairy", "grain",
        "herb", "spice", "bread", "pasta", "rice", "egg", "cheese", "milk",
        "tomato", "onion", "garlic", "carrot", "potato", "chicken", "beef",
        "pork", "salmon", "tuna", "shrimp", "butter", "oil", "salt", "pepper",
        "ginger", "mushroom", "cabbage", "spinach", "lettuce", "broccoli",
        "cucumber", "tofu", "miso", "soy sauce", "vinegar", "sugar", "noodle",
        "flour", "corn", "bean", "lemon", "lime", "apple", "cream", "yogurt",
    )
    tool_terms: Tuple[str, ...] = (
        "knife", "cutting board", "pan", "pot", "spatula", "spoon", "fork",
        "bowl", "plate", "oven", "stove", "mixer", "blender", "whisk",
        "ladle", "tongs", "peeler", "grater", "colander", "measuring cup",
        "wok", "skillet", "saucepan", "frying pan", "steamer", "mortar",
        "pestle", "rolling pin", "baking sheet", "timer",
    )
    action_terms: Tuple[str, ...] = (
        "cutting", "chopping", "slicing", "dicing", "mincing",
        "cooking", "frying", "boiling", "steaming", "baking", "grilling",
        "roasting", "sauteing", "simmering", "heating",
        "mixing", "stirring", "whisking", "folding", "blending", "kneading",
        "washing", "peeling", "draining", "marinating", "seasoning",
        "pouring", "measuring", "cooling",
        "serving", "plating", "garnishing", "arranging",
    )

    food_indicators: Tuple[str, ...] = (
        "fresh", "raw", "cooked", "fried", "baked", "roasted", "grilled",
        "chopped", "sliced", "diced", "minced", "organic", "natural",
        "homemade", "recipe", "ingredient", "seasoning", "flavor",
    )
    tool_indicators: Tuple[str, ...] = (
        "kitchen", "utensil", "appliance", "cookware", "bakeware",
        "cutlery", "tableware", "equipment", "gadget", "tool",
    )

    ingredient_hints: Tuple[str, ...] = (
        "food", "produce", "fruit", "vegetable", "meat", "seafood", "dairy",
        "beverage", "bread", "dessert", "grain", "herb", "spice", "condiment",
    )
    tool_hints: Tuple[str, ...] = (
        "kitchen", "utensil", "cookware", "appliance", "tableware", "cutlery",
    )
    action_hints: Tuple[str, ...] = ("action", "activity")

    loose_ingredient_terms: Tuple[str, ...] = (
        "dish", "meal", "cuisine", "food", "snack", "breakfast", "lunch",
        "dinner", "sauce", "soup", "salad", "sandwich", "pizza", "cake",
        "dessert",
    )
    loose_tool_terms: Tuple[str, ...] = (
        "container", "vessel", "holder", "rack", "stand", "board",
        "mat", "towel", "glove", "mitt", "apron",
    )
    loose_action_terms: Tuple[str, ...] = (
        "hand", "finger", "motion", "movement", "gesture", "adding",
        "combining", "preparing",
    )
    loose_action_map: Pairs = (
        ("hand", "mixing"),
        ("finger", "mixing"),
        ("motion", "stirring"),
        ("movement", "stirring"),
        ("gesture", "seasoning"),
    )
    loose_action_default: str = "preparing"

    ingredient_categories: Groups = (
        ("vegetable", ("tomato", "onion", "garlic", "carrot", "potato",
                       "lettuce", "cucumber", "cabbage", "spinach",
                       "broccoli", "mushroom", "vegetable")),
        ("meat", ("chicken", "beef", "pork", "lamb", "turkey", "meat")),
        ("seafood", ("fish", "salmon", "tuna", "shrimp", "crab", "lobster",
                     "seafood")),
        ("dairy", ("milk", "cheese", "butter", "yogurt", "cream")),
        ("grain", ("rice", "pasta", "bread", "wheat", "oat", "flour",
                   "noodle")),
        ("fruit", ("apple", "banana", "orange", "lemon", "lime",
                   "strawberry", "fruit")),
        ("spice", ("salt", "pepper", "paprika", "cumin", "oregano",
                   "ginger", "spice")),
    )
    tool_types: Groups = (
        ("cutting", ("knife", "peeler", "grater", "cutting board")),
        ("cooking", ("pan", "pot", "oven", "stove", "wok", "skillet",
                     "steamer")),
        ("mixing", ("bowl", "whisk", "spoon", "spatula", "mixer",
                    "blender")),
        ("measuring", ("cup", "scale", "timer")),
        ("serving", ("plate", "fork", "ladle", "tongs")),
    )

    action_buckets: Groups = (
        ("cutting", ("cut", "chop", "slic", "dic", "minc")),
        ("heating", ("fry", "fri", "boil", "steam", "bak", "grill", "cook",
                     "roast", "saut", "simmer", "heat")),
        ("mixing", ("mix", "stir", "whisk", "fold", "blend", "knead")),
        ("preparation", ("wash", "peel", "drain", "prepar")),
    )
    related_tools: Groups = (
        ("cut", ("knife", "cutting board")),
        ("fry", ("pan", "spatula")),
        ("boil", ("pot", "ladle")),
        ("mix", ("bowl", "whisk", "spoon")),
        ("bak", ("oven", "baking sheet")),
    )

    phase_keywords: Groups = (
        ("Preparation", ("cutting", "chopping", "slicing", "washing",
                         "peeling")),
        ("Cooking", ("frying", "boiling", "steaming", "baking", "grilling",
                     "cooking")),
        ("Finishing", ("plating", "garnishing", "serving", "arranging")),
    )
    phase_descriptions: Pairs = (
        ("Preparation", "Preparing ingredients by cutting, washing, and organizing"),
        ("Cooking", "Main cooking process"),
        ("Finishing", "Final plating and presentation"),
    )

    plural_forms: Pairs = (
        ("tomatoes", "tomato"),
        ("potatoes", "potato"),
        ("onions", "onion"),
        ("carrots", "carrot"),
        ("eggs", "egg"),
        ("mushrooms", "mushroom"),
        ("peppers", "pepper"),
        ("noodles", "noodle"),
        ("beans", "bean"),
        ("lemons", "lemon"),
        ("limes", "lime"),
        ("apples", "apple"),
        ("vegetables", "vegetable"),
        ("berries", "berry"),
        ("cherries", "cherry"),
        ("leaves", "leaf"),
        ("loaves", "loaf"),
        ("knives", "knife"),
    )
    default_amounts: Pairs = (
        ("salt", "to taste"),
        ("pepper", "to taste"),
        ("oil", "2-3 tablespoons"),
        ("butter", "2 tablespoons"),
        ("garlic", "2-3 cloves"),
        ("onion", "1 medium"),
    )

    discourse_markers: Tuple[str, ...] = (
        "first", "next", "then", "finally", "after that",
    )
    state_stems: Groups = (
        ("cooked", ("fry", "fri", "boil", "steam", "bak", "grill", "cook",
                    "roast", "saut", "simmer", "heat")),
        ("processed", ("cut", "chop", "slic", "dic", "minc", "mix", "stir",
                       "whisk", "blend")),
        ("final", ("plat", "serv", "garnish", "arrang")),
    )

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def plural_map(self) -> Dict[str, str]:
        return dict(self.plural_forms)

    def amount_map(self) -> Dict[str, str]:
        return dict(self.default_amounts)

    def canonical_ingredient(self, name: str) -> str:
        """Normalize an ingredient name and singularize known plurals word by word."""
        plurals = self.plural_map()
        return " ".join(plurals.get(w, w) for w in normalize_text(name).split())

    def action_bucket(self, action: str) -> Optional[str]:
        """Return the semantic bucket (cutting, heating, ...) for an action string."""
        stems = stem_phrase(action)
        for bucket, bucket_stems in self.action_buckets:
            if any(s in stems for s in bucket_stems):
                return bucket
        return None

    def phase_description(self, phase: str) -> str:
        return dict(self.phase_descriptions).get(phase, phase)

    def extend(self, **additions: Tuple) -> "Vocabulary":
        """
        Return a copy with extra entries appended to the named tables.

        Example:
            vocab.extend(tool_terms=("mandoline",))
        """
        names = {f.name for f in fields(self)}
        changes = {}
        for key, extra in additions.items():
            if key not in names:
                raise ValueError(f"Unknown vocabulary table: {key}")
            current = getattr(self, key)
            if not isinstance(current, tuple):
                raise ValueError(f"Vocabulary field {key} is not extendable")
            changes[key] = current + tuple(extra)
        return replace(self, **changes)


DEFAULT_VOCABULARY = Vocabulary()
