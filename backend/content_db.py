"""
Content Database - Curated titles and the illness term vocabulary
Loaded once at startup and never modified afterwards.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from models import MediaType

logger = logging.getLogger(__name__)


def _dedupe(items: Iterable[str]) -> tuple[str, ...]:
    """Lower-case, trim and drop repeats while keeping the first occurrence."""
    seen = set()
    ordered = []
    for item in items:
        value = str(item).strip().lower()
        if value and value not in seen:
            seen.add(value)
            ordered.append(value)
    return tuple(ordered)


def _override(data: dict, key: str, default: list) -> list:
    """Use data[key] when it is a list (an empty list clears the default)."""
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, list):
        logger.error(f"Ignoring '{key}': expected a list, got {type(value).__name__}")
        return default
    return value


class ContentDatabase:
    """
    Holds the read-only reference data used by the classifier:

    - curated lists of known cancer-themed books and movies
    - the term vocabulary scanned against source text
    - the cancer-specific subset used for trigger-tag membership

    Overrides can be dropped into `db_path` as known_titles.json
    ({"books": [...], "movies": [...]}) and terms.json
    ({"terms": [...], "specific_terms": [...]}).
    """

    def __init__(self, db_path: Optional[str] = None):
        """Initialize and load lists from db_path (defaults to content-db/)."""
        if db_path is None:
            # Default to content-db folder relative to backend
            db_path = Path(__file__).parent.parent / "content-db"

        self.db_path = Path(db_path)
        self.books: tuple[str, ...] = ()
        self.movies: tuple[str, ...] = ()
        self.terms: tuple[str, ...] = ()
        self.specific_terms: tuple[str, ...] = ()

        self._load_database()

    def _load_database(self) -> None:
        titles = self._read_json("known_titles.json") or {}
        defaults = self._get_default_titles()
        self.books = _dedupe(_override(titles, "books", defaults["books"]))
        self.movies = _dedupe(_override(titles, "movies", defaults["movies"]))

        terms = self._read_json("terms.json") or {}
        self.specific_terms = _dedupe(_override(terms, "specific_terms", self._get_default_specific_terms()))
        self.terms = _dedupe(_override(
            terms, "terms", list(self.specific_terms) + self._get_default_illness_terms()
        ))

        logger.info(
            f"Content database: {len(self.books)} books, {len(self.movies)} movies, "
            f"{len(self.terms)} terms"
        )

    def _read_json(self, filename: str) -> Optional[dict]:
        path = self.db_path / filename
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except Exception as e:
            logger.error(f"Error loading {path}: {e}")
            return None
        if not isinstance(data, dict):
            logger.error(f"Error loading {path}: expected a JSON object")
            return None
        return data

    def get_curated_titles(self, media_type) -> tuple[str, ...]:
        """Curated list for a media type"""
        media_type = MediaType.parse(media_type)
        return self.books if media_type == MediaType.BOOK else self.movies

    def _get_default_specific_terms(self) -> list[str]:
        """Terms that directly name cancer"""
        return [
            'cancer', 'tumor', 'tumour', 'malignancy', 'carcinoma', 'sarcoma', 'leukemia', 'leukaemia',
            'lymphoma', 'melanoma', 'metastasis', 'chemotherapy', 'radiation', 'oncology', 'oncologist',
            'biopsy', 'malignant', 'benign', 'cancer treatment', 'cancer patient', 'cancer survivor',
            'breast cancer', 'lung cancer', 'prostate cancer', 'colon cancer', 'pancreatic cancer',
            'brain tumor', 'brain tumour', 'cancer diagnosis', 'cancer prognosis', 'cancer remission',
            'thyroid cancer', 'ovarian cancer', 'cervical cancer', 'bone cancer', 'blood cancer',
            'pediatric oncology', 'oncology unit', 'cancer unit', 'cancer ward', 'oncology ward',
            'cancer hospital', 'oncology department', 'cancer center', 'oncology center',
        ]

    def _get_default_illness_terms(self) -> list[str]:
        """Terminal illness and implied-illness phrases"""
        # Generic death words ('dying', 'death', 'fatal') and bare 'terminal' are
        # left out; they only count inside the longer phrases below.
        return [
            'terminal illness', 'terminal disease', 'terminal condition', 'terminal diagnosis',
            'end stage', 'end-stage', 'advanced stage', 'late stage', 'final stage',
            'life expectancy', 'prognosis', 'months to live', 'weeks to live', 'days to live',
            'incurable', 'untreatable',
            'hospice care', 'end of life', 'final days', 'last days', 'deathbed',
            'chronic illness', 'serious illness', 'life-threatening', 'critical condition',
            'medical crisis', 'health crisis', 'declining health', 'failing health',
            'deteriorating condition', 'worsening condition', 'progressive disease',
            'degenerative disease', 'fatal disease', 'lethal disease', 'deadly disease',
            'hospice', 'palliative',
            # Phrases that imply the theme without naming it
            'battles illness', 'fighting illness', 'struggles with illness', 'deals with illness',
            'battles disease', 'fighting disease', 'struggles with disease', 'deals with disease',
            'terminal situation',
            'medical condition', 'serious condition', 'life-threatening condition',
            'life-threatening disease', 'life-threatening illness',
            'diagnosed with', 'diagnosis of', 'receives diagnosis',
            'fights cancer', 'battles cancer', 'struggles with cancer', 'deals with cancer',
            'medical treatment', 'undergoes treatment', 'receives treatment',
            'hospital stay', 'hospitalization', 'hospitalized',
            'sick with', 'illness strikes', 'disease affects',
            'coping with illness', 'coping with disease', 'living with illness', 'living with disease',
            'illness story', 'disease story', 'medical drama', 'illness drama',
            'health struggles', 'medical struggles', 'health battle', 'medical battle',
        ]

    def _get_default_titles(self) -> dict:
        """Known cancer-themed books and movies"""
        return {
            "books": [
                'the fault in our stars', 'a walk to remember', 'me before you', "my sister's keeper",
                'the notebook', 'five feet apart', 'everything everything', 'the sun is also a star',
                'all the bright places', 'looking for alaska', 'paper towns', 'turtles all the way down',
                'my friends', 'fredrik backman', 'beartown', 'us against you', 'winners',
                'a man called ove', 'anxious people', 'britt-marie was here',
                'the midnight library', 'matt haig', 'the seven husbands of evelyn hugo',
                'a monster calls', 'patrick ness', 'siobhan dowd',
                'the art of racing in the rain', 'garth stein', 'enzo', 'denny', 'eve',
                'the travelling cat chronicles', 'hiro arikawa',
                'taylor jenkins reid', 'the invisible life of addie larue', 'v.e. schwab',
                'the book thief', 'markus zusak', 'the kite runner', 'khaled hosseini',
                'the help', 'kathryn stockett', 'water for elephants', 'sara gruen',
                "the time traveler's wife", 'audrey niffenegger', 'the lovely bones',
                'alice sebold', 'the curious incident of the dog in the night-time',
                'mark haddon', 'life of pi', 'yann martel',
                'all the colors of the dark', 'all the colours of the dark', 'chris whitaker',
                'my oxford year',
            ],
            "movies": [
                # Popular titles
                'the fault in our stars', 'a walk to remember', 'me before you', "my sister's keeper",
                'the notebook', 'five feet apart', 'everything everything', 'the sun is also a star',
                'all the bright places', 'looking for alaska', 'paper towns', 'turtles all the way down',
                'the bucket list', '50/50', 'wish i was here', 'the big sick',
                'the art of racing in the rain',
                # Terminal illness films and adaptations
                'steel magnolias', 'beaches', 'terms of endearment', 'love story',
                'the lovely bones', "the time traveler's wife", 'the book thief',
                'the kite runner', 'life of pi', 'the curious incident of the dog in the night-time',
                'the midnight library', 'the seven husbands of evelyn hugo',
                'the invisible life of addie larue', 'water for elephants', 'the help',
                'my friends', 'a man called ove', 'beartown', 'us against you', 'winners',
                'anxious people', 'britt-marie was here', 'a monster calls',
                'garth stein', 'enzo', 'denny', 'eve',
                'taylor jenkins reid', 'v.e. schwab', 'markus zusak', 'khaled hosseini',
                'kathryn stockett', 'sara gruen', 'audrey niffenegger', 'alice sebold',
                'mark haddon', 'yann martel', 'matt haig', 'patrick ness', 'siobhan dowd',
                'fredrik backman',
                # Wikipedia "Category:Films about cancer"
                '3 days to kill', 'achtste groepers huilen niet', 'ae dil hai mushkil',
                'after everything', 'all our desires', 'the angel in the clock', 'anita', 'asu',
                'babyteeth', 'the barbarian invasions', 'be sure to share', 'being impossible',
                'biutiful', 'bliss', 'the broken circle breakdown', "c'est la vie mon chéri",
                'caro diario', 'champions', 'chimani pakhar', 'chocolate', 'constantine',
                'a crab in the pool', 'cries and whispers', 'the cure', 'dar emtedad-e shab',
                'de plus belle', 'death of a superhero', 'the delinquent season',
                'the dinner guest', 'the dinosaurs extinction', 'the dirt', 'the doctor',
                'donkeyhead', 'dream home', 'dying to survive', 'eierdiebe',
                "everything's gonna be alright", 'the farewell', 'fatenah', 'food of the gods ii',
                'freeheld', 'from karkheh to rhein', 'from riches to rags',
                'gaano kadalas ang minsan', 'the girl with nine wigs', 'glorious days',
                'guardami', 'hemlock society', 'her love boils bathwater', 'holding hope',
                'how to make millions before grandma dies', 'i want to talk', 'ikiru',
                'ip man 3', 'ip man 4', 'jack ryan shadow recruit', 'james white',
                'johnny', 'josée', 'a journey', 'keith', 'killer nun',
                "knockin' on heaven's door", 'language lessons', 'the last song',
                'let me eat your pancreas', 'life is beautiful', 'like a star shining in the night',
                'a little red flower', 'live is life', 'look both ways', 'love cuts',
                'love is all you need', 'love or something like that', 'ma ma', 'mad women',
                'maidaan', 'maktub', 'manang biring', 'the marching band', 'matching jack',
                'melody', 'mera naam hai mohabbat', 'mindanao', 'more than blue',
                'moscow my love', "mr rice's secret", 'my annoying brother', 'my dear brother',
                'my hindu friend', 'my life without me', 'la nave', 'norman',
                'notes for my son', 'nubes grises soplan sobre el campo verde', 'one week',
                'ordinary love', 'paul à québec', 'piety', 'the pig the snake and the pigeon',
                'a place for lovers', 'the preparation', 'princes in exile', 'the professor',
                'running out of time', 'rush hour', 'saw ii', 'saw iii', 'saw x',
                'self/less', 'silence like glass', 'simon', 'sitting in bars with cake',
                'the sob', 'society girl', 'sunny', 'sunshine', "tammy's always dying",
                'ang tanging ina mo last na to', 'terry', 'thor love and thunder',
                'tribute', 'truman', 'under the lighthouse dancing', 'under the weather',
                'viejas amigas', 'ways to live forever', 'we are family', 'white lie',
                # Later additions
                'miss you already', 'me and earl and the dying girl', 'lullaby',
                "cool kids don't cry", 'sickos', 'wish list', 'mood indigo',
                'safe haven', 'now is good', 'stuck in love',
                'falling overnight', 'after fall winter', 'natural selection',
                'a little bit of heaven', 'one day', 'the heart of christmas',
                'restless', 'endings',
            ],
        }
