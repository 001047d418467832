"""
Keyword-overlap scoring between a resume and a job posting.

Both texts are reduced to the known keywords of four categories (technical,
database, soft skills, experience level). Each category present in the job
contributes matched/total times its weight; categories the job does not
mention are left out of the score entirely.
"""
import logging
import math
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .. import schemas

logger = logging.getLogger(__name__)

JOB_TEXT_FIELDS = ("description", "requirements", "additional_info", "position", "job_type")
MAX_SUGGESTIONS = 5

_PUNCTUATION = re.compile(r"[^\w\s.\-]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class KeywordCatalog:
    """
    Immutable keyword configuration for the scorer.

    ``categories`` maps a category name to its keywords (single or multi-word),
    ``phrases`` are extra multi-word terms counted as ``phrase_category``, and
    ``weights`` gives each category's share of the score.
    """
    categories: Mapping[str, frozenset]
    weights: Mapping[str, float]
    phrases: Tuple[str, ...] = ()
    phrase_category: str = "technical"
    _lookup: Mapping[str, str] = field(init=False, repr=False, compare=False)
    _multi_word: Tuple[Tuple[str, str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        categories = MappingProxyType({name: frozenset(words) for name, words in self.categories.items()})
        weights = MappingProxyType(dict(self.weights))
        if set(weights) != set(categories):
            raise ValueError("Every keyword category needs exactly one weight")

        lookup: Dict[str, str] = {}
        multi_word: List[Tuple[str, str]] = []
        for name, words in categories.items():
            for word in sorted(words):
                if " " in word:
                    multi_word.append((word, name))
                else:
                    lookup.setdefault(word, name)
        for phrase in self.phrases:
            if phrase not in {word for word, _ in multi_word}:
                multi_word.append((phrase, self.phrase_category))

        object.__setattr__(self, "categories", categories)
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "_lookup", MappingProxyType(lookup))
        object.__setattr__(self, "_multi_word", tuple(multi_word))

    @property
    def category_names(self) -> Tuple[str, ...]:
        return tuple(self.categories)

    def category_of(self, token: str) -> Optional[str]:
        return self._lookup.get(token)

    @property
    def multi_word_terms(self) -> Tuple[Tuple[str, str], ...]:
        return self._multi_word


DEFAULT_CATALOG = KeywordCatalog(
    categories={
        "technical": {
            "javascript", "typescript", "python", "java", "php", "ruby", "go", "rust",
            "react", "vue", "angular", "node.js", "express", "django", "flask", "spring", "laravel",
            "html", "css", "sass", "scss", "tailwind", "bootstrap", "jquery", "redux", "mobx",
            "graphql", "rest", "api", "microservices", "kubernetes", "docker", "aws", "azure", "gcp",
        },
        "database": {
            "mysql", "postgresql", "mongodb", "redis", "elasticsearch", "sqlite", "oracle",
            "sql", "nosql", "database", "prisma", "sequelize", "mongoose", "typeorm",
        },
        "soft": {
            "leadership", "teamwork", "communication", "problem solving", "analytical",
            "creative", "innovative", "agile", "scrum", "project management", "collaboration",
            "mentoring", "training", "presentation", "documentation", "testing", "debugging",
        },
        "experience": {
            "junior", "senior", "lead", "principal", "staff", "manager", "director",
            "intern", "entry level", "mid level", "experienced", "expert",
        },
    },
    weights={"technical": 0.4, "database": 0.3, "soft": 0.2, "experience": 0.1},
    phrases=(
        "machine learning", "artificial intelligence", "data science", "cloud computing",
        "full stack", "front end", "back end", "user experience", "user interface",
        "project management", "version control", "continuous integration", "test driven development",
    ),
)


def normalize_text(text: str) -> str:
    """Lowercase, turn punctuation other than dots and dashes into spaces, collapse whitespace."""
    return _WHITESPACE.sub(" ", _PUNCTUATION.sub(" ", text.lower())).strip()


def tokenize(text: str) -> List[str]:
    tokens = []
    for raw in normalize_text(text).split(" "):
        token = raw.strip(".-")
        if len(token) > 1:
            tokens.append(token)
    return tokens


def extract_keywords(text: str, catalog: KeywordCatalog = DEFAULT_CATALOG) -> Dict[str, List[str]]:
    """
    Find the catalog keywords present in text, grouped by category.

    Keywords keep the order of their first appearance; multi-word terms follow
    the single-word ones.
    """
    found: Dict[str, Dict[str, None]] = {name: {} for name in catalog.category_names}
    for token in tokenize(text):
        category = catalog.category_of(token)
        if category is not None:
            found[category][token] = None

    padded = f" {normalize_text(text)} "
    for term, category in catalog.multi_word_terms:
        if f" {term} " in padded:
            found[category][term] = None

    return {name: list(words) for name, words in found.items()}


def keyword_frequency(keyword: str, text: str) -> int:
    """Whole-word occurrences of keyword in text, at least 1 since the keyword was found there."""
    if " " in keyword:
        words = normalize_text(text).split(" ")
        size = len(keyword.split(" "))
        count = sum(1 for i in range(len(words) - size + 1) if " ".join(words[i:i + size]) == keyword)
    else:
        count = tokenize(text).count(keyword)
    return max(1, count)


def empty_match_result(catalog: KeywordCatalog = DEFAULT_CATALOG, is_estimate: bool = False) -> schemas.MatchResult:
    return schemas.MatchResult(
        percentage=0,
        breakdown=schemas.MatchBreakdown(
            matched=[],
            missing=[],
            categories={name: schemas.CategoryScore() for name in catalog.category_names},
        ),
        suggestions=[],
        is_estimate=is_estimate,
    )


def job_text(job_fields: Any) -> str:
    """Join the scored text fields of a job given as a mapping or an object."""
    parts = []
    for name in JOB_TEXT_FIELDS:
        if isinstance(job_fields, Mapping):
            value = job_fields.get(name)
        else:
            value = getattr(job_fields, name, None)
        parts.append(value or "")
    return " ".join(parts)


def calculate_match(resume_text: Optional[str], job_fields: Any,
                    catalog: KeywordCatalog = DEFAULT_CATALOG,
                    is_estimate: bool = False) -> schemas.MatchResult:
    """
    Score how well a resume's text covers a job posting's keywords.

    Args:
        resume_text: Plain text of the resume
        job_fields: Job as a mapping or object exposing description, requirements,
            additional_info, position and job_type
        catalog: Keyword configuration to score against
        is_estimate: Marks the result as based on synthesized resume text

    Returns:
        MatchResult with a 0-100 percentage, matched/missing keywords, per-category
        counts and up to five suggestions. Missing input gives a zero result.
    """
    if not resume_text or not resume_text.strip() or job_fields is None:
        return empty_match_result(catalog, is_estimate=is_estimate)

    combined_job_text = job_text(job_fields)
    resume_keywords = extract_keywords(resume_text, catalog)
    job_keywords = extract_keywords(combined_job_text, catalog)

    resume_all = {word for words in resume_keywords.values() for word in words}
    job_all = [word for name in catalog.category_names for word in job_keywords[name]]

    categories = {}
    weighted_score = 0.0
    total_weight = 0.0
    for name in catalog.category_names:
        wanted = job_keywords[name]
        matched = sum(1 for word in wanted if word in resume_all)
        categories[name] = schemas.CategoryScore(matched=matched, total=len(wanted))
        if wanted:
            weight = catalog.weights[name]
            weighted_score += matched / len(wanted) * weight
            total_weight += weight

    percentage = 0
    if total_weight > 0:
        # half-up rounding
        percentage = int(math.floor(weighted_score / total_weight * 100 + 0.5))

    matched_keywords = [word for word in job_all if word in resume_all]
    missing_keywords = [word for word in job_all if word not in resume_all]
    ranked = sorted(missing_keywords, key=lambda word: keyword_frequency(word, combined_job_text), reverse=True)

    logger.debug("Match computed: %s%% (%d matched, %d missing)", percentage, len(matched_keywords), len(missing_keywords))
    return schemas.MatchResult(
        percentage=percentage,
        breakdown=schemas.MatchBreakdown(
            matched=matched_keywords,
            missing=missing_keywords,
            categories=categories,
        ),
        suggestions=ranked[:MAX_SUGGESTIONS],
        is_estimate=is_estimate,
    )


FALLBACK_SKILLS = MappingProxyType({
    "technical": (
        "JavaScript", "Python", "React", "Node.js", "SQL", "Git",
        "REST APIs", "Database Management", "Problem Solving",
        "Software Development", "Testing", "Debugging",
    ),
    "creative": (
        "Design", "Creative Thinking", "Adobe Creative Suite",
        "UI/UX Design", "Visual Design", "Branding",
        "Project Management", "Collaboration", "Communication",
    ),
    "executive": (
        "Leadership", "Strategic Planning", "Team Management",
        "Business Development", "Project Management",
        "Communication", "Decision Making", "Analytics",
    ),
    "general": (
        "Communication", "Problem Solving", "Team Collaboration",
        "Project Management", "Analytical Thinking",
        "Time Management", "Adaptability", "Leadership",
    ),
})


def fallback_resume_content(resume_type: Optional[str], title: Optional[str]) -> str:
    """Deterministic stand-in text for a resume whose file could not be read."""
    resume_type = resume_type or "general"
    title = title or "Resume"
    skills = FALLBACK_SKILLS.get(resume_type, FALLBACK_SKILLS["general"])
    skill_lines = "\n".join(f"- {skill}" for skill in skills)
    return (
        f"Resume: {title}\n"
        f"Resume Type: {resume_type}\n\n"
        f"Core Skills and Competencies:\n{skill_lines}\n\n"
        "Professional Experience:\n"
        f"- Demonstrated expertise in {resume_type} field\n"
        "- Strong track record of successful project delivery\n"
        "- Experience working in collaborative team environments\n"
        "- Proven ability to adapt to new technologies and methodologies\n\n"
        "Key Strengths:\n"
        "- Strong analytical and problem-solving abilities\n"
        "- Excellent communication and interpersonal skills\n"
        "- Detail-oriented with focus on quality deliverables\n"
        "- Continuous learner committed to professional growth"
    )


def resume_text_for_matching(resume: Any) -> Tuple[str, bool]:
    """
    Text to score a stored resume with.

    Returns:
        (text, is_estimate): the extracted text, or the fallback content and True
        when nothing could be extracted from the file
    """
    content = getattr(resume, "content_text", None)
    if content and content.strip():
        return content, False
    logger.info("Resume %s has no readable text, scoring against fallback content", getattr(resume, "id", None))
    return fallback_resume_content(getattr(resume, "resume_type", None), getattr(resume, "title", None)), True


def match_resume_to_job(resume: Any, job: Any, catalog: KeywordCatalog = DEFAULT_CATALOG) -> schemas.MatchResult:
    text, is_estimate = resume_text_for_matching(resume)
    return calculate_match(text, job, catalog=catalog, is_estimate=is_estimate)
