"""Tool definitions advertised to the realtime model.

The user and conversation ids are injected by the function endpoint, so
they are not part of the parameters the model has to fill in.
"""

from __future__ import annotations

from typing import Any, Dict, List


def _function(name: str, description: str, properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
	return {
		"type": "function",
		"name": name,
		"description": description,
		"parameters": {
			"type": "object",
			"properties": properties,
			"required": required,
		},
	}


TUTOR_TOOLS: List[Dict[str, Any]] = [
	_function(
		"create_quiz",
		"Create a new quiz on a specific subject and topic. Generate questions based on the topic and difficulty level.",
		{
			"subject": {"type": "string", "description": "The subject area (e.g., Math, Science, History)"},
			"topic": {"type": "string", "description": "The specific topic within the subject"},
			"questionCount": {"type": "number", "description": "Number of questions to generate"},
			"difficulty": {"type": "string", "enum": ["easy", "medium", "hard"]},
		},
		["subject", "topic", "difficulty"],
	),
	_function(
		"log_study_session",
		"Log a completed study session with duration and subject",
		{
			"subject": {"type": "string", "description": "The subject studied"},
			"topic": {"type": "string", "description": "The specific topic studied"},
			"duration": {"type": "number", "description": "Duration of the session in minutes"},
		},
		["subject", "duration"],
	),
	_function(
		"get_study_progress",
		"Get study progress statistics for a user, optionally filtered by subject",
		{
			"subject": {"type": "string", "description": "Optional: filter by specific subject"},
			"days": {"type": "number", "description": "Number of days to look back (default 30)"},
		},
		[],
	),
	_function(
		"set_study_goal",
		"Create a new study goal with a target and deadline",
		{
			"subject": {"type": "string", "description": "The subject for the goal"},
			"targetHours": {"type": "number", "description": "Target study hours"},
			"deadline": {"type": "string", "description": "Deadline in ISO format"},
		},
		["subject", "targetHours", "deadline"],
	),
	_function(
		"get_quiz_history",
		"Get quiz attempt history for a user, including scores",
		{
			"subject": {"type": "string", "description": "Optional: filter by subject"},
			"limit": {"type": "number", "description": "Maximum number of results to return"},
		},
		[],
	),
	_function(
		"recommend_review_topics",
		"Analyze past quizzes and study sessions to recommend topics that need review",
		{"subject": {"type": "string", "description": "Optional: focus on specific subject"}},
		[],
	),
	_function(
		"search_learning_resources",
		"Search for learning resources (articles, videos) on a specific topic",
		{"topic": {"type": "string", "description": "The topic to search for"}},
		["topic"],
	),
]
