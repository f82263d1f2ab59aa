# career_assessment/core/utils.py
import asyncio
import logging
import secrets
import string
import time
import uuid
from typing import Dict, Any, Optional
from .config import config
from .models import StudentProfile

logger = logging.getLogger(__name__)

class FlowNotFound(Exception):
    """No live flow under the given id"""

class MemoryManager:
    """In-memory registry of live assessment flows.

    Expired flows are closed so their session timers are released. The
    cleanup loop runs on the service event loop, alongside the timers.
    """

    def __init__(self):
        self.flows = {}  # flow_id -> flow
        self.created = {}  # flow_id -> creation time
        self._cleanup_task: Optional[asyncio.Task] = None

    def start_cleanup(self):
        """Start the periodic cleanup task on the running loop"""
        if self._cleanup_task and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.get_running_loop().create_task(self._periodic_cleanup())
        logger.info("✅ Flow cleanup task started")

    async def stop_cleanup(self):
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

    async def _periodic_cleanup(self):
        """Periodic cleanup of expired flows"""
        while True:
            await asyncio.sleep(config.MEMORY_CLEANUP_INTERVAL)
            try:
                self.cleanup_expired_data()
            except Exception as e:
                logger.error(f"Cleanup task error: {e}")

    def cleanup_expired_data(self, now: float = None) -> int:
        """Close and drop flows older than the expiration window"""
        current_time = now if now is not None else time.time()

        expired = [
            flow_id for flow_id, created_at in list(self.created.items())
            if current_time - created_at > config.FLOW_EXPIRATION_SECONDS
        ]

        for flow_id in expired:
            self.remove_flow(flow_id)

        if expired:
            logger.info(f"🧹 Cleanup: removed {len(expired)} expired flows")
        return len(expired)

    def add_flow(self, flow) -> str:
        self.flows[flow.flow_id] = flow
        self.created[flow.flow_id] = time.time()
        logger.info(f"✅ Flow registered: {flow.flow_id} ({flow.kind})")
        return flow.flow_id

    def get_flow(self, flow_id: str):
        flow = self.flows.get(flow_id)
        if flow is None:
            raise FlowNotFound(f"Assessment {flow_id} not found or expired")
        return flow

    def remove_flow(self, flow_id: str):
        """Tear down a flow and release its session"""
        flow = self.flows.pop(flow_id, None)
        self.created.pop(flow_id, None)
        if flow is not None:
            flow.close()
            logger.info(f"✅ Flow cleaned up: {flow_id}")

    def clear(self):
        for flow_id in list(self.flows):
            self.remove_flow(flow_id)

    def get_memory_stats(self) -> Dict[str, Any]:
        """Get registry statistics"""
        kinds: Dict[str, int] = {}
        for flow in self.flows.values():
            kinds[flow.kind] = kinds.get(flow.kind, 0) + 1
        return {
            "active_flows": len(self.flows),
            "by_kind": kinds,
            "cleanup_running": bool(self._cleanup_task and not self._cleanup_task.done())
        }

class ValidationUtils:
    """Utility functions for data validation"""

    @staticmethod
    def validate_profile(name: str, class_level: str, stream: str = "",
                         sub_stream: str = "") -> StudentProfile:
        """Build a student profile, enforcing the class/stream rules"""
        name = ValidationUtils.sanitize_input(name or "", max_length=100) or "Student"
        class_level = (class_level or "").strip()
        stream = (stream or "").strip()
        sub_stream = (sub_stream or "").strip()

        if class_level not in config.CLASS_LEVELS:
            raise ValueError(f"Invalid class level: {class_level or 'missing'}")

        if class_level in config.STREAM_CLASS_LEVELS:
            if stream not in config.STREAMS:
                raise ValueError("A stream is required for Class 11 and Class 12")
            if stream == "Science":
                if sub_stream not in config.SCIENCE_SUB_STREAMS:
                    raise ValueError("Science students must choose PCM or PCB")
            else:
                sub_stream = ""
        else:
            stream = ""
            sub_stream = ""

        return StudentProfile(name=name, class_level=class_level, stream=stream, sub_stream=sub_stream)

    @staticmethod
    def sanitize_input(input_str: str, max_length: int = 5000) -> str:
        """Sanitize user input"""
        if not input_str:
            return ""

        sanitized = input_str.strip()

        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length]

        return sanitized

class DateTimeUtils:
    """Utility functions for date/time operations"""

    @staticmethod
    def get_current_timestamp() -> float:
        """Get current timestamp"""
        return time.time()

async def run_blocking(func, *args):
    """Run a blocking SDK/database call off the event loop"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)

# Global instances
memory_manager = MemoryManager()

# Helper functions for easy access
def generate_flow_id() -> str:
    """Generate unique flow ID"""
    return str(uuid.uuid4())

def generate_test_id() -> str:
    """Generate unique test ID"""
    return str(uuid.uuid4())

def generate_test_password(length: int = None) -> str:
    """Upper-case alphanumeric password handed to the student"""
    if length is None:
        length = config.TEST_PASSWORD_LENGTH
    alphabet = string.ascii_uppercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))
