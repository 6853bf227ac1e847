from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import logging

from fxjournal.database import get_storage
from fxjournal.routes.users import get_user_or_404, require_user_id
from fxjournal.schemas.goal_schema import GoalCreate, GoalUpdate, MilestoneCreate, MilestoneUpdate
from fxjournal.storage.base import BaseStorage

logger = logging.getLogger(__name__)
router = APIRouter()


def get_goal_or_404(storage: BaseStorage, goal_id: int) -> dict:
    goal = storage.get_goal_by_id(goal_id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@router.get("")
def list_goals(user_id: Optional[int] = Query(None, alias="userId"), storage: BaseStorage = Depends(get_storage)):
    require_user_id(user_id)
    return {"success": True, "goals": storage.get_goals_by_user_id(user_id)}


@router.post("", status_code=201)
def create_goal(goal: GoalCreate, storage: BaseStorage = Depends(get_storage)):
    get_user_or_404(storage, goal.user_id)
    new_goal = storage.create_goal(goal.model_dump())
    logger.info(f"Created goal {new_goal['id']} ({new_goal['target_type']}) for user {goal.user_id}")
    return {"success": True, "goal": new_goal}


@router.put("/milestones/{milestone_id}")
def update_milestone(milestone_id: int, milestone: MilestoneUpdate, storage: BaseStorage = Depends(get_storage)):
    updated = storage.update_goal_milestone(milestone_id, milestone.model_dump(exclude_unset=True))
    return {"success": True, "milestone": updated}


@router.delete("/milestones/{milestone_id}")
def delete_milestone(milestone_id: int, storage: BaseStorage = Depends(get_storage)):
    storage.delete_goal_milestone(milestone_id)
    return {"success": True, "message": "Milestone deleted successfully"}


@router.get("/{goal_id}")
def get_goal(goal_id: int, storage: BaseStorage = Depends(get_storage)):
    return {"success": True, "goal": get_goal_or_404(storage, goal_id)}


@router.put("/{goal_id}")
def update_goal(goal_id: int, goal_update: GoalUpdate, storage: BaseStorage = Depends(get_storage)):
    get_goal_or_404(storage, goal_id)
    updated = storage.update_goal(goal_id, goal_update.model_dump(exclude_unset=True))
    return {"success": True, "goal": updated}


@router.delete("/{goal_id}")
def delete_goal(goal_id: int, storage: BaseStorage = Depends(get_storage)):
    get_goal_or_404(storage, goal_id)
    storage.delete_goal(goal_id)
    return {"success": True, "message": "Goal deleted successfully"}


@router.post("/{goal_id}/milestones", status_code=201)
def create_milestone(goal_id: int, milestone: MilestoneCreate, storage: BaseStorage = Depends(get_storage)):
    get_goal_or_404(storage, goal_id)
    new_milestone = storage.create_goal_milestone({**milestone.model_dump(), "goal_id": goal_id})
    return {"success": True, "milestone": new_milestone}


@router.get("/{goal_id}/milestones")
def list_milestones(goal_id: int, storage: BaseStorage = Depends(get_storage)):
    get_goal_or_404(storage, goal_id)
    return {"success": True, "milestones": storage.get_goal_milestones_by_goal_id(goal_id)}


@router.post("/{goal_id}/calculate-progress")
def calculate_progress(goal_id: int, storage: BaseStorage = Depends(get_storage)):
    get_goal_or_404(storage, goal_id)
    progress = storage.calculate_goal_progress(goal_id)
    return {"success": True, "progress": progress, "goal": storage.get_goal_by_id(goal_id)}
