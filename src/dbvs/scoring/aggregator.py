"""Weighted combination of per-source severity scores"""

import logging
from typing import Optional

from ..config.settings import ScoreWeights
from ..core.models import VulnerabilityRecord


class ScoreAggregator:
    """Combine CVE, CNVD and Aliyun scores into one final score"""

    def __init__(self, weights: Optional[ScoreWeights] = None):
        self.weights = weights or ScoreWeights()

    def aggregate(self, cvss: Optional[float] = None, cnvd: Optional[float] = None,
                  aliyun: Optional[float] = None) -> Optional[float]:
        """Weighted mean over the scores that are present.

        Dividing by the weights actually present keeps a lone CVSS score
        unchanged. A source whose weight is 0 is ignored, so a record scored
        only by such a source gets None, the same as an unscored record.
        """
        total = 0.0
        weight = 0.0
        for score, w in ((cvss, self.weights.cve),
                         (cnvd, self.weights.cnvd),
                         (aliyun, self.weights.aliyun)):
            if score is None:
                continue
            total += score * w
            weight += w

        if weight == 0:
            return None
        return total / weight

    def score_record(self, record: VulnerabilityRecord) -> Optional[float]:
        final = self.aggregate(record.cvss_score, record.cnvd_score, record.aliyun_score)
        if final is not None:
            logging.debug(f"{record.vuln_id}: cvss={record.cvss_score} cnvd={record.cnvd_score} "
                          f"aliyun={record.aliyun_score} -> final={final:.4f}")
        return final
