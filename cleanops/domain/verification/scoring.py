"""
Photo verification scoring.

Pure functions over photo records: the per-job completion score, the GPS
accuracy ladder, and the per-employee and overall rollups shown in the
verification center.
"""

import enum
from collections import Counter
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

PHOTO_STATUSES = ("pending", "verified", "rejected")


class GpsAccuracy(str, enum.Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    NONE = "none"


# Upper bounds in metres, checked in order
GPS_THRESHOLDS = (
    (10, GpsAccuracy.EXCELLENT),
    (30, GpsAccuracy.GOOD),
    (100, GpsAccuracy.FAIR),
)


def status_counts(statuses: Iterable[str]) -> dict[str, int]:
    counts = Counter(statuses)
    return {status: counts.get(status, 0) for status in PHOTO_STATUSES}


def round_half_up(value: float, places: int = 0) -> float:
    """Round halves away from zero (12.5 -> 13) instead of to the nearest even number"""
    rounded = Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def verification_score(statuses: Iterable[str]) -> int:
    """Percentage of photos verified, 0 when there are no photos"""
    statuses = list(statuses)
    if not statuses:
        return 0
    verified = sum(1 for s in statuses if s == "verified")
    return round_half_up(100 * verified / len(statuses))


def gps_accuracy_status(
    latitude: Optional[float],
    longitude: Optional[float],
    accuracy_meters: Optional[float],
) -> GpsAccuracy:
    """Bucket a device-reported accuracy radius; a photo with no coordinates has none"""
    if latitude is None or longitude is None:
        return GpsAccuracy.NONE
    accuracy = accuracy_meters or 0
    for limit, bucket in GPS_THRESHOLDS:
        if accuracy <= limit:
            return bucket
    return GpsAccuracy.POOR


@dataclass
class JobPhotoSummary:
    """Photos of one completed job plus the employee credited with it"""

    job_id: int
    employee_id: Optional[int]
    statuses: list[str] = field(default_factory=list)
    duration_minutes: Optional[int] = None


def employee_stats(jobs: Iterable[JobPhotoSummary]) -> list[dict]:
    """Per-employee totals; jobs with no employee are left out"""
    grouped: dict[int, list[JobPhotoSummary]] = {}
    for job in jobs:
        if job.employee_id is None:
            continue
        grouped.setdefault(job.employee_id, []).append(job)

    stats = []
    for employee_id, employee_jobs in grouped.items():
        statuses = [s for job in employee_jobs for s in job.statuses]
        counts = status_counts(statuses)
        durations = [job.duration_minutes for job in employee_jobs if job.duration_minutes]
        total_jobs = len(employee_jobs)
        stats.append(
            {
                "employeeId": employee_id,
                "totalJobs": total_jobs,
                "totalPhotos": len(statuses),
                "verifiedPhotos": counts["verified"],
                "rejectedPhotos": counts["rejected"],
                "pendingPhotos": counts["pending"],
                "avgJobDuration": round_half_up(sum(durations) / len(durations)) if durations else 0,
                "avgPhotosPerJob": round_half_up(len(statuses) / total_jobs, 1),
                "verificationRate": verification_score(statuses),
            }
        )
    return sorted(stats, key=lambda s: s["employeeId"])


def summary(jobs: Iterable[JobPhotoSummary]) -> dict:
    jobs = list(jobs)
    counts = status_counts(s for job in jobs for s in job.statuses)
    return {
        "totalJobs": len(jobs),
        "totalPhotos": sum(counts.values()),
        "pendingPhotos": counts["pending"],
        "verifiedPhotos": counts["verified"],
        "rejectedPhotos": counts["rejected"],
    }
