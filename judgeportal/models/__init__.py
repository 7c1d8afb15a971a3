from .user import User
from .sponsor import Sponsor
from .event import Event
from .team import Team
from .team_member import TeamMember
from .event_judge import EventJudge
from .judge_session import JudgeSession
from .rubric_criterion import RubricCriterion
from .score_submission import ScoreSubmission
from .score import Score
from .judge_comment import JudgeComment
from .activity_log import ActivityLog
