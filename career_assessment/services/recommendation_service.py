# career_assessment/services/recommendation_service.py
import asyncio
import logging
from typing import List

from ..core.ai_services import get_ai_service
from ..core.models import Recommendation, RoadmapStep, Track
from ..core.states import (
    RecommendationsFailed, RecommendationsReady, RoadmapReady, RoadmapRequested, TrackChosen
)
from ..core.utils import ValidationUtils, run_blocking

logger = logging.getLogger(__name__)

RECOMMENDATIONS_FAILED_MESSAGE = "Could not generate recommendations. Please try again."

class RecommendationService:
    """Fetches recommendations, their images and roadmaps for a practice flow.

    Every request takes a fresh request id from the flow; results are
    delivered as completion events, so a result that arrives after the
    operator moved on is dropped by the transition function.
    """

    def __init__(self, ai_service=None):
        self.ai_service = ai_service or get_ai_service()

    async def load_recommendations(self, flow, track: Track):
        request_id = flow.next_request_id()
        flow.dispatch(TrackChosen(track, request_id))
        state = flow.state
        attempt, profile = state.attempt, state.profile

        stream = profile.stream
        if profile.sub_stream:
            stream = f"{stream} ({profile.sub_stream})"

        try:
            raw = await run_blocking(
                self.ai_service.generate_recommendations,
                attempt.transcript(),
                profile.class_level,
                stream,
                track.value,
                attempt.result.time_taken
            )
            items = [Recommendation.from_dict(item) for item in raw or []]
            items = [item for item in items if item.title]
            if not items:
                raise Exception("No recommendations returned")
        except Exception as e:
            logger.error(f"❌ Recommendations failed for {flow.flow_id}: {e}")
            return flow.dispatch(RecommendationsFailed(request_id, RECOMMENDATIONS_FAILED_MESSAGE))

        # A missing image is not an error
        await self.attach_images(items)
        logger.info(f"✅ {len(items)} {track.value} recommendations ready: {flow.flow_id}")
        return flow.dispatch(RecommendationsReady(request_id, items))

    async def attach_images(self, items: List[Recommendation]):
        results = await asyncio.gather(
            *(run_blocking(self.ai_service.generate_image, item.image_prompt) for item in items),
            return_exceptions=True
        )
        for item, url in zip(items, results):
            if isinstance(url, Exception):
                logger.warning(f"Image for '{item.title}' failed: {url}")
                continue
            item.image_url = url

    async def load_roadmap(self, flow, title: str):
        title = ValidationUtils.sanitize_input(title or "", max_length=200)
        if not title:
            raise ValueError("A recommendation title is required")

        request_id = flow.next_request_id()
        flow.dispatch(RoadmapRequested(title, request_id))

        try:
            raw = await run_blocking(self.ai_service.generate_roadmap, title)
            steps = [
                RoadmapStep(
                    title=str(step.get("title", "")),
                    duration=str(step.get("duration", "")),
                    description=str(step.get("description", ""))
                )
                for step in raw or []
            ]
        except Exception as e:
            logger.warning(f"Roadmap for '{title}' unavailable: {e}")
            steps = []

        return flow.dispatch(RoadmapReady(request_id, steps))

# Singleton pattern for recommendation service
_recommendation_service = None

def get_recommendation_service() -> RecommendationService:
    """Get recommendation service instance (singleton)"""
    global _recommendation_service
    if _recommendation_service is None:
        _recommendation_service = RecommendationService()
    return _recommendation_service
