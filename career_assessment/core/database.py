# career_assessment/core/database.py
import logging
import time
from typing import List, Dict, Any, Optional

import pymongo
from .config import config

logger = logging.getLogger(__name__)

class DatabaseManager:
    """MongoDB access for teacher-issued tests and their student records"""

    def __init__(self):
        """Initialize database connection"""
        logger.info("🔄 Initializing Database Manager")

        self.mongo_client = None
        self.db = None
        self.tests_collection = None
        self.students_collection = None

        self._init_mongodb()

    def _init_mongodb(self):
        """Initialize MongoDB connection"""
        try:
            self.mongo_client = pymongo.MongoClient(
                config.MONGO_CONNECTION_STRING,
                serverSelectionTimeoutMS=config.MONGO_TIMEOUT_MS,
                maxPoolSize=10,
                minPoolSize=1,
                maxIdleTimeMS=30000,
                waitQueueTimeoutMS=5000
            )

            # Test connection
            self.mongo_client.admin.command('ping')

            self.db = self.mongo_client[config.MONGO_DB_NAME]
            self.tests_collection = self.db[config.TESTS_COLLECTION]
            self.students_collection = self.db[config.STUDENTS_COLLECTION]

            # Create indexes for performance
            try:
                self.tests_collection.create_index("test_id", unique=True)
                self.tests_collection.create_index("password")
                self.tests_collection.create_index("teacherId")
                self.students_collection.create_index(
                    [("teacherId", pymongo.ASCENDING), ("email", pymongo.ASCENDING)], unique=True
                )
                logger.info("✅ Database indexes created")
            except Exception as idx_error:
                logger.warning(f"⚠️ Index creation failed: {idx_error}")

            logger.info("✅ MongoDB connection established")

        except Exception as e:
            logger.error(f"❌ MongoDB connection failed: {e}")
            raise Exception(f"MongoDB connection failure: {e}")

    # ==================== Tests ====================

    def get_test(self, test_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a proctored test record by id"""
        try:
            logger.info(f"🔍 Fetching test from MongoDB: {test_id}")
            doc = self.tests_collection.find_one({"test_id": test_id}, {"_id": 0})

            if not doc:
                logger.warning(f"No test found for test_id: {test_id}")
                return None

            return doc

        except Exception as e:
            logger.error(f"❌ Failed to fetch test from MongoDB: {e}")
            raise Exception(f"Test retrieval failed: {e}")

    def find_test_by_password(self, password: str) -> Optional[Dict[str, Any]]:
        """Locate a test from the password handed out by the teacher"""
        try:
            return self.tests_collection.find_one(
                {"password": password},
                {"_id": 0, "test_id": 1, "status": 1}
            )
        except Exception as e:
            logger.error(f"❌ Password lookup failed: {e}")
            raise Exception(f"Test lookup failed: {e}")

    def create_test(self, document: Dict[str, Any]) -> str:
        """Insert a pending test record"""
        try:
            document = dict(document, createdAt=time.time())
            result = self.tests_collection.insert_one(document)

            if not result.inserted_id:
                raise Exception("MongoDB insert operation failed")

            logger.info(f"✅ Test stored: {document['test_id']}")
            return document["test_id"]

        except Exception as e:
            logger.error(f"❌ Test creation failed: {e}")
            raise Exception(f"Test creation failed: {e}")

    def complete_test(self, test_id: str, fields: Dict[str, Any]) -> bool:
        """Merge the submission into a pending test.

        The filter on status makes the write conditional: a record that is
        already completed is left untouched and False is returned.
        """
        try:
            update = dict(fields, status="completed", completedAt=time.time())
            result = self.tests_collection.update_one(
                {"test_id": test_id, "status": "pending"},
                {"$set": update}
            )

            if result.matched_count == 0:
                logger.warning(f"⚠️ Test {test_id} was not pending; submission not written")
                return False

            logger.info(f"✅ Test submission saved to MongoDB: {test_id}")
            return True

        except Exception as e:
            logger.error(f"❌ Submission save failed: {e}")
            raise Exception(f"Submission save failed: {e}")

    def list_teacher_tests(self, teacher_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Tests issued by one teacher, newest first"""
        try:
            return list(self.tests_collection.find(
                {"teacherId": teacher_id},
                {"_id": 0, "password": 0, "questions": 0}
            ).sort("createdAt", pymongo.DESCENDING).limit(limit))

        except Exception as e:
            logger.error(f"❌ Failed to list tests for teacher {teacher_id}: {e}")
            raise Exception(f"Test listing failed: {e}")

    # ==================== Students ====================

    def upsert_student(self, teacher_id: str, email: str, fields: Dict[str, Any]):
        """Create or merge a student record under a teacher"""
        try:
            self.students_collection.update_one(
                {"teacherId": teacher_id, "email": email},
                {"$set": dict(fields, teacherId=teacher_id, email=email)},
                upsert=True
            )
        except Exception as e:
            logger.error(f"❌ Student upsert failed: {e}")
            raise Exception(f"Student save failed: {e}")

    def update_student_aptitude(self, teacher_id: str, email: str, iq_score: int) -> bool:
        """Refresh the denormalized aptitude value on a student record"""
        result = self.students_collection.update_one(
            {"teacherId": teacher_id, "email": email},
            {"$set": {"iq": iq_score, "lastTestDate": time.time()}}
        )
        return result.matched_count > 0

    def validate_connection(self) -> Dict[str, Any]:
        """Validate database connection"""
        status = {
            "mongodb": False,
            "collections_accessible": False,
            "overall": False
        }

        try:
            self.mongo_client.admin.command('ping')
            status["mongodb"] = True

            test_count = self.tests_collection.count_documents({}, limit=1)
            status["collections_accessible"] = True
            logger.info(f"✅ MongoDB accessible with {test_count} test documents")

        except Exception as e:
            logger.error(f"❌ MongoDB validation failed: {e}")

        status["overall"] = status["mongodb"] and status["collections_accessible"]
        return status

    def close(self):
        """Close database connections"""
        if self.mongo_client:
            self.mongo_client.close()
            logger.info("✅ Database connections closed")

# Singleton pattern for database manager
_db_manager = None

def get_db_manager() -> DatabaseManager:
    """Get database manager instance (singleton)"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager

def close_db_manager():
    """Close database manager instance"""
    global _db_manager
    if _db_manager:
        _db_manager.close()
        _db_manager = None
