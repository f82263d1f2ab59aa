# career_assessment/core/dummy_data.py
from typing import List, Dict, Any

# Canned aptitude questions used when the AI service is unavailable
DUMMY_QUESTIONS = [
    {
        "question": "Choose the word most similar in meaning to 'Abundant'.",
        "options": ["Scarce", "Plentiful", "Narrow", "Hidden"],
        "correctAnswerIndex": 1
    },
    {
        "question": "What is 15% of 200?",
        "options": ["15", "20", "30", "45"],
        "correctAnswerIndex": 2
    },
    {
        "question": "Which gas do plants absorb from the atmosphere for photosynthesis?",
        "options": ["Oxygen", "Nitrogen", "Carbon dioxide", "Hydrogen"],
        "correctAnswerIndex": 2
    },
    {
        "question": "Who drafted the Constitution of India as chairman of the drafting committee?",
        "options": ["Jawaharlal Nehru", "B. R. Ambedkar", "Sardar Patel", "Rajendra Prasad"],
        "correctAnswerIndex": 1
    },
    {
        "question": "Find the next number in the series: 2, 6, 12, 20, 30, ?",
        "options": ["36", "40", "42", "44"],
        "correctAnswerIndex": 2
    },
    {
        "question": "Pick the correctly spelled word.",
        "options": ["Accomodate", "Acommodate", "Accommodate", "Acomodate"],
        "correctAnswerIndex": 2
    },
    {
        "question": "If a train travels 120 km in 2 hours, what is its average speed?",
        "options": ["50 km/h", "60 km/h", "70 km/h", "80 km/h"],
        "correctAnswerIndex": 1
    },
    {
        "question": "What is the SI unit of electric current?",
        "options": ["Volt", "Ohm", "Ampere", "Watt"],
        "correctAnswerIndex": 2
    },
    {
        "question": "Which river is known as the 'Sorrow of Bihar'?",
        "options": ["Ganga", "Kosi", "Son", "Gandak"],
        "correctAnswerIndex": 1
    },
    {
        "question": "BOOK is to READ as FORK is to ?",
        "options": ["Cook", "Eat", "Kitchen", "Spoon"],
        "correctAnswerIndex": 1
    }
]

DUMMY_RECOMMENDATIONS = {
    "jobs": [
        {
            "title": "Data Analyst",
            "description": "Strong numerical and pattern questions point to comfort with structured reasoning. Analysts turn raw numbers into decisions.",
            "imagePrompt": "a data analyst studying colorful dashboards"
        },
        {
            "title": "Civil Engineer",
            "description": "Good science and quantitative answers suggest an aptitude for applied problem solving on physical projects.",
            "imagePrompt": "a civil engineer reviewing bridge blueprints on site"
        },
        {
            "title": "Content Strategist",
            "description": "Solid verbal answers show a feel for language that suits planning and writing for digital audiences.",
            "imagePrompt": "a content strategist planning articles on a whiteboard"
        }
    ],
    "studies": [
        {
            "title": "B.Sc. Statistics",
            "description": "Accuracy on math and series questions suits a degree built around probability and data.",
            "imagePrompt": "a university statistics lecture with charts"
        },
        {
            "title": "B.Tech Computer Science",
            "description": "Logical reasoning performance aligns with programming and algorithms coursework.",
            "imagePrompt": "students coding together in a modern computer lab"
        },
        {
            "title": "BA Economics",
            "description": "A balance of social science and numerical answers fits the quantitative side of economics.",
            "imagePrompt": "an economics classroom discussing market graphs"
        }
    ]
}

DUMMY_ROADMAP = [
    {"title": "Build Foundations", "duration": "0-6 months", "description": "Strengthen core school subjects and basic concepts of the field."},
    {"title": "Formal Education", "duration": "1-4 years", "description": "Enrol in a relevant degree or diploma programme."},
    {"title": "Practical Experience", "duration": "6-12 months", "description": "Take internships and small projects to apply what you learn."},
    {"title": "Specialize", "duration": "1-2 years", "description": "Pick a niche, earn certifications and build a portfolio."},
    {"title": "Launch Career", "duration": "Ongoing", "description": "Apply for roles, network and keep learning."}
]

DUMMY_ANALYSIS = {
    "swot": {
        "strengths": ["Quick numerical reasoning", "Consistent attention on verbal items"],
        "weaknesses": ["Skips questions under time pressure"],
        "opportunities": ["Structured practice on timed tests"],
        "threats": ["Loss of confidence after difficult sections"]
    },
    "teachingPlan": "Short daily sessions mixing puzzles and reading, with untimed practice first and gradual introduction of time limits.",
    "suggestions": [
        {"career": "Engineering", "reason": "Good logical reasoning"},
        {"career": "Accounting", "reason": "Comfort with numbers"},
        {"career": "Journalism", "reason": "Solid verbal ability"},
        {"career": "Architecture", "reason": "Spatial awareness"},
        {"career": "Teaching", "reason": "Balanced profile"}
    ],
    "analysis": "The student shows balanced aptitude with a tilt towards numerical and logical tasks.",
    "verdict": "Moderate Fit"
}

def dummy_questions(question_count: int) -> List[Dict[str, Any]]:
    """Cycle through the canned questions to reach the requested count"""
    questions = []
    for i in range(question_count):
        template = DUMMY_QUESTIONS[i % len(DUMMY_QUESTIONS)]
        questions.append(dict(template, options=list(template["options"])))
    return questions

def dummy_recommendations(track: str) -> List[Dict[str, Any]]:
    return [dict(item) for item in DUMMY_RECOMMENDATIONS.get(track, DUMMY_RECOMMENDATIONS["jobs"])]

def dummy_roadmap() -> List[Dict[str, str]]:
    return [dict(step) for step in DUMMY_ROADMAP]

def dummy_analysis(test_type: str) -> Dict[str, Any]:
    analysis = dict(DUMMY_ANALYSIS)
    if test_type == "Specific":
        analysis.pop("suggestions", None)
    return analysis
