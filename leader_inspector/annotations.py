"""
Best-effort annotation clients for neighbor leaders.

Skip blame comes from the Trillium skip_blame API and voting latency/rank
from the vx.tools voting leaderboard. Each source is requested once per
client, in a single attempt, and lookups return None on any failure so a
missing annotation never aborts a report.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from tqdm import tqdm

from leader_inspector import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LatencyRank:
    average_latency: float
    rank: int


@dataclass(frozen=True)
class LeaderAnnotation:
    """Best-effort facts about a leader; None fields were unavailable."""
    skip_blame: Optional[bool] = None
    latency: Optional[LatencyRank] = None


class AnnotationClient:
    """
    Shared session handling for the REST annotation sources.

    Both sources publish one list covering every validator, so a client
    downloads it on the first lookup and answers every later lookup of the
    run from that copy. A failed download is not repeated.
    """

    name = 'annotation'

    def __init__(self, url: str, timeout: float = config.REQUEST_TIMEOUT):
        self.url = url
        self.timeout = timeout
        adapter = HTTPAdapter(max_retries=Retry(total=0, raise_on_status=False))
        self.session = requests.Session()
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)
        self._lock = threading.Lock()
        self._loaded = False
        self._entries = None

    def _request_json(self, method: str, **kwargs):
        """Return the decoded JSON body, or None after logging why it was unavailable."""
        try:
            response = self.session.request(method, self.url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.warning(f"{self.name} request to {self.url} failed: {e}")
        except ValueError as e:
            logger.warning(f"{self.name} response from {self.url} is not JSON: {e}")
        return None

    def _fetch_entries(self) -> Optional[list]:
        raise NotImplementedError

    def entries(self) -> Optional[list]:
        """The source's list of per-validator entries, or None when it is unavailable."""
        with self._lock:
            if not self._loaded:
                self._entries = self._fetch_entries()
                self._loaded = True
            return self._entries

    def close(self):
        self.session.close()


class SkipBlameClient(AnnotationClient):
    name = 'skip_blame'

    def __init__(self, url: str = config.SKIP_BLAME_URL, timeout: float = config.REQUEST_TIMEOUT):
        super().__init__(url, timeout)

    def _fetch_entries(self) -> Optional[list]:
        data = self._request_json('GET')
        if data is None:
            return None

        validators = (data.get('data') or {}).get('validators') if isinstance(data, dict) else None
        if not isinstance(validators, list):
            logger.warning("'validators' array missing or skip blame response changed")
            return None
        return validators

    def is_blamed(self, identity: str) -> Optional[bool]:
        """True when identity is on the skip blame list, False when not, None when unknown."""
        validators = self.entries()
        if validators is None:
            return None

        return any(
            isinstance(entry, dict) and entry.get('identity_pubkey') == identity
            for entry in validators
        )


class LatencyRankClient(AnnotationClient):
    name = 'vx_leaderboard'

    def __init__(self, url: str = config.VX_LEADERBOARD_URL, timeout: float = config.REQUEST_TIMEOUT):
        super().__init__(url, timeout)

    def _fetch_entries(self) -> Optional[list]:
        data = self._request_json('POST', json={}, headers={'Content-Type': 'application/json'})
        if data is None:
            return None

        records = data.get('records') if isinstance(data, dict) else None
        if not isinstance(records, list):
            logger.warning("'records' array missing or leaderboard response changed")
            return None
        return records

    def latency_rank(self, identity: str) -> Optional[LatencyRank]:
        """Average vote latency (totalLatency / votedSlots) and 1-based leaderboard rank."""
        records = self.entries()
        if records is None:
            return None

        for index, record in enumerate(records):
            if not isinstance(record, dict) or record.get('nodeAddress') != identity:
                continue
            total_latency = record.get('totalLatency')
            voted_slots = record.get('votedSlots')
            if not isinstance(total_latency, (int, float)) or not isinstance(voted_slots, (int, float)) or voted_slots <= 0:
                logger.warning(f"Leaderboard record for {identity} has no usable latency figures")
                return None
            return LatencyRank(average_latency=total_latency / voted_slots, rank=index + 1)

        logger.info(f"{identity} not found on the voting leaderboard")
        return None


def annotate_leader(identity: str, skip_blame: Optional[SkipBlameClient],
                    latency: Optional[LatencyRankClient]) -> LeaderAnnotation:
    return LeaderAnnotation(
        skip_blame=skip_blame.is_blamed(identity) if skip_blame is not None else None,
        latency=latency.latency_rank(identity) if latency is not None else None,
    )


def annotate_leaders(identities: Iterable[str], skip_blame: Optional[SkipBlameClient],
                     latency: Optional[LatencyRankClient], max_workers: int = config.ANNOTATION_WORKERS,
                     show_progress: bool = True) -> Dict[str, LeaderAnnotation]:
    """Fetch annotations for each distinct identity in parallel."""
    unique = sorted({i for i in identities if i})
    annotations: Dict[str, LeaderAnnotation] = {}
    if not unique:
        return annotations

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(unique)))) as executor:
        futures = {executor.submit(annotate_leader, identity, skip_blame, latency): identity for identity in unique}
        for future in tqdm(as_completed(futures), total=len(futures), desc="Annotating leaders",
                           unit="leader", disable=not show_progress):
            identity = futures[future]
            try:
                annotations[identity] = future.result()
            except Exception as e:  # a failed task only loses its own annotation
                logger.warning(f"Annotation for {identity} failed: {e}")
                annotations[identity] = LeaderAnnotation()
    return annotations
