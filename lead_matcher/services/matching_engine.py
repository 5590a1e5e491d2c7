"""
Candidate Generator & Assignment Engine

Turns per-pair probabilities into a one-to-one matching between sales and
leads:

1. Score the full sales x leads cross product
2. Round probabilities to two decimals, drop pairs below MATCH_THRESHOLD
3. Sort by probability desc, then raw score desc (stable: generation order
   breaks remaining ties, i.e. sale index then lead index)
4. Walk the sorted list greedily, committing a candidate unless its sale is
   already assigned or its lead already used

Greedy, not optimal bipartite matching: highest-probability pairs are
committed first and later pairs only get what is left. Downstream reports
(including tie-break order) rely on exactly this behaviour.

Scoring may run on a thread pool (pairs are independent); sorting and
assignment always run sequentially on one total order.
"""

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

import structlog

from lead_matcher.config import settings
from lead_matcher.models.records import LeadRecord, SaleRecord
from lead_matcher.services.ingestion import MatchContext
from lead_matcher.services.matching import (
    ExplainabilityBuilder,
    MATCH_THRESHOLD,
    PairwiseScorer,
)
from lead_matcher.services.matching.thresholds import PROBABILITY_DECIMALS

logger = structlog.get_logger(__name__)


class MatchRunCancelled(Exception):
    """The caller's cancellation callback fired between sale batches."""


def round_probability(probability: float, decimals: int = PROBABILITY_DECIMALS) -> float:
    """Round half up (0.305 -> 0.31), unlike Python's banker's rounding."""
    factor = 10 ** decimals
    return math.floor(probability * factor + 0.5) / factor


@dataclass(frozen=True)
class MatchCandidate:
    """A scored sale/lead pair that cleared the threshold."""
    sale_index: int
    lead_index: int
    probability: float  # Rounded to two decimals
    score: float  # Raw points
    explanation: Tuple[str, ...] = ()
    forced: bool = False

    @property
    def sort_key(self) -> Tuple[float, float]:
        return (-self.probability, -self.score)


class Assignment:
    """
    Partial injective mapping sale index -> MatchCandidate.

    No lead index appears in more than one committed candidate. Built from
    scratch on every run.
    """

    def __init__(self):
        self._by_sale: Dict[int, MatchCandidate] = {}
        self._used_leads: Set[int] = set()

    def can_commit(self, candidate: MatchCandidate) -> bool:
        return candidate.sale_index not in self._by_sale and candidate.lead_index not in self._used_leads

    def commit(self, candidate: MatchCandidate) -> bool:
        """Commit the candidate if both its sale and lead are still free."""
        if not self.can_commit(candidate):
            return False
        self._by_sale[candidate.sale_index] = candidate
        self._used_leads.add(candidate.lead_index)
        return True

    def get(self, sale_index: int) -> Optional[MatchCandidate]:
        return self._by_sale.get(sale_index)

    def __contains__(self, sale_index: int) -> bool:
        return sale_index in self._by_sale

    def __len__(self) -> int:
        return len(self._by_sale)

    def __iter__(self) -> Iterator[MatchCandidate]:
        return iter(self._by_sale.values())

    @property
    def used_leads(self) -> Set[int]:
        return set(self._used_leads)


def sort_candidates(candidates: Sequence[MatchCandidate]) -> List[MatchCandidate]:
    """Probability desc, raw score desc; stable for everything else."""
    return sorted(candidates, key=lambda c: c.sort_key)


def assign_greedy(sorted_candidates: Sequence[MatchCandidate]) -> Assignment:
    """
    Greedy one-to-one assignment over an already sorted candidate list.

    Must run sequentially: the result depends on visiting candidates in a
    single total order.
    """
    assignment = Assignment()
    for candidate in sorted_candidates:
        if assignment.commit(candidate):
            logger.debug("assignment_committed",
                         sale_index=candidate.sale_index,
                         lead_index=candidate.lead_index,
                         probability=candidate.probability)
    return assignment


@dataclass
class SaleOutcome:
    """Assignment outcome for one sale, in sale order."""
    sale_index: int
    matched: bool
    probability: float = 0.0
    explanation: List[str] = field(default_factory=list)
    lead_index: Optional[int] = None
    lead_id: Optional[str] = None
    scoring_details: Dict = field(default_factory=dict)

    @property
    def explanation_text(self) -> str:
        return ExplainabilityBuilder.join(self.explanation)


@dataclass
class MatchRunResult:
    """Result of one matching pass."""
    outcomes: List[SaleOutcome]
    candidates: List[MatchCandidate]  # Sorted, above threshold
    assignment: Assignment

    @property
    def matched_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.matched)

    @property
    def unmatched_count(self) -> int:
        return len(self.outcomes) - self.matched_count


class MatchingEngine:
    """
    Matching engine over a fully materialized MatchContext.

    Usage:
        context = build_match_context(lead_rows, sale_rows, mapping)
        result = MatchingEngine().run(context)

        for outcome in result.outcomes:
            if outcome.matched:
                print(outcome.sale_index, outcome.lead_id, outcome.probability)
    """

    def __init__(
        self,
        scorer: Optional[PairwiseScorer] = None,
        threshold: float = MATCH_THRESHOLD,
        workers: Optional[int] = None,
        batch_size: Optional[int] = None,
    ):
        """
        Initialize matching engine.

        Args:
            scorer: Pairwise scorer (default: PairwiseScorer with standard weights)
            threshold: Minimum rounded probability for a candidate
            workers: Scoring threads (default: settings.match_scoring_workers)
            batch_size: Sales per scoring batch (default: settings.match_sale_batch_size)
        """
        self.scorer = scorer or PairwiseScorer()
        self.threshold = threshold
        self.workers = max(1, workers if workers is not None else settings.match_scoring_workers)
        self.batch_size = max(1, batch_size if batch_size is not None else settings.match_sale_batch_size)

    def run(self, context: MatchContext) -> MatchRunResult:
        """
        Run one full matching pass.

        Raises:
            MatchRunCancelled: context.should_cancel returned True between batches
        """
        log = logger.bind(
            sale_count=len(context.sales),
            lead_count=len(context.leads),
            workers=self.workers,
        )

        candidates = sort_candidates(self.generate_candidates(context))
        log.info("candidates_generated",
                 candidate_count=len(candidates),
                 threshold=self.threshold)

        assignment = assign_greedy(candidates)
        outcomes = self._build_outcomes(context, assignment)

        result = MatchRunResult(outcomes=outcomes, candidates=candidates, assignment=assignment)
        log.info("match_run_completed",
                 matched=result.matched_count,
                 unmatched=result.unmatched_count)
        return result

    def generate_candidates(self, context: MatchContext) -> List[MatchCandidate]:
        """
        Score every sale/lead pair and keep those at or above the threshold.

        Returned in generation order (sale index, then lead index), unsorted.
        """
        batches = [
            context.sales[start:start + self.batch_size]
            for start in range(0, len(context.sales), self.batch_size)
        ]

        if self.workers == 1 or len(batches) <= 1:
            candidates: List[MatchCandidate] = []
            for batch in batches:
                self._check_cancelled(context)
                candidates.extend(self._score_batch(batch, context.leads))
            return candidates

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = []
            candidates = []
            try:
                for batch in batches:
                    self._check_cancelled(context)
                    futures.append(executor.submit(self._score_batch, batch, context.leads))

                for future in futures:
                    self._check_cancelled(context)
                    candidates.extend(future.result())
            except MatchRunCancelled:
                for pending in futures:
                    pending.cancel()
                raise
            return candidates

    def _score_batch(self, sales: Sequence[SaleRecord], leads: Sequence[LeadRecord]) -> List[MatchCandidate]:
        candidates = []
        for sale in sales:
            for lead in leads:
                result = self.scorer.score(lead, sale)
                probability = round_probability(result.probability)
                if probability < self.threshold:
                    continue
                candidates.append(MatchCandidate(
                    sale_index=sale.index,
                    lead_index=lead.index,
                    probability=probability,
                    score=result.score,
                    explanation=tuple(result.explanation),
                    forced=result.forced,
                ))
        return candidates

    @staticmethod
    def _check_cancelled(context: MatchContext) -> None:
        if context.should_cancel is not None and context.should_cancel():
            logger.warning("match_run_cancelled",
                           sale_count=len(context.sales),
                           lead_count=len(context.leads))
            raise MatchRunCancelled("Match run cancelled by caller")

    @staticmethod
    def _build_outcomes(context: MatchContext, assignment: Assignment) -> List[SaleOutcome]:
        outcomes = []
        for sale in context.sales:
            candidate = assignment.get(sale.index)
            if candidate is None:
                outcomes.append(SaleOutcome(
                    sale_index=sale.index,
                    matched=False,
                    scoring_details=ExplainabilityBuilder.build(sale, None),
                ))
                continue

            lead = context.lead(candidate.lead_index)
            outcomes.append(SaleOutcome(
                sale_index=sale.index,
                matched=True,
                probability=candidate.probability,
                explanation=list(candidate.explanation),
                lead_index=candidate.lead_index,
                lead_id=lead.lead_id,
                scoring_details=ExplainabilityBuilder.build(sale, candidate, lead),
            ))
        return outcomes


__all__ = [
    "MatchingEngine",
    "MatchCandidate",
    "MatchRunResult",
    "MatchRunCancelled",
    "Assignment",
    "SaleOutcome",
    "assign_greedy",
    "sort_candidates",
    "round_probability",
]
