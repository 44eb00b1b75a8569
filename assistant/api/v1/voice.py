from fastapi import APIRouter, Depends, HTTPException, Query

from assistant.api.v1.schemas import (
    ClarifyRequestSchema,
    ConflictEventSchema,
    ConflictSchema,
    ConversationListSchema,
    ConversationSchema,
    DeleteResponseSchema,
    ExecutedActionSchema,
    ExtractedDataSchema,
    MessageSchema,
    OptionSchema,
    StatsSchema,
    TimeSlotSchema,
    TurnKind,
    TurnResponseSchema,
    VoiceCommandRequestSchema,
)
from assistant.application.use_cases.orchestrator import ConversationOrchestrator
from assistant.application.utils.action_builder import extracted_to_payload
from assistant.domain.entities.conflict import Conflict
from assistant.domain.entities.conversation_state import ConversationState
from assistant.domain.entities.executed_action import ExecutedAction
from assistant.domain.entities.parsed_action import ClarificationOption
from assistant.domain.entities.turn_result import ClarificationNeeded, ConflictDetected, Success, TurnResult
from assistant.wiring.dependencies import get_orchestrator

router = APIRouter()


@router.post("/voice/command", response_model=TurnResponseSchema)
async def voice_command(
    req: VoiceCommandRequestSchema,
    uc: ConversationOrchestrator = Depends(get_orchestrator),
):
    result = await uc.start_or_continue(
        user_id=req.user_id,
        transcript=req.transcript,
        conversation_id=req.conversation_id,
    )
    return _turn_schema(result)


@router.post("/voice/clarify", response_model=TurnResponseSchema)
async def voice_clarify(
    req: ClarifyRequestSchema,
    uc: ConversationOrchestrator = Depends(get_orchestrator),
):
    if not (req.free_text and req.free_text.strip()) and not req.selected_option_id:
        raise HTTPException(status_code=400, detail="free_text or selected_option_id is required")
    result = await uc.resolve_clarification(
        user_id=req.user_id,
        conversation_id=req.conversation_id,
        free_text=req.free_text,
        selected_option_id=req.selected_option_id,
    )
    return _turn_schema(result)


@router.get("/conversations/stats", response_model=StatsSchema)
def conversation_stats(uc: ConversationOrchestrator = Depends(get_orchestrator)):
    return StatsSchema(**uc.stats())


@router.get("/conversations", response_model=ConversationListSchema)
def list_conversations(
    user_id: str = Query(min_length=1),
    uc: ConversationOrchestrator = Depends(get_orchestrator),
):
    return ConversationListSchema(conversations=[_conversation_schema(s) for s in uc.list_conversations(user_id)])


@router.get("/conversations/{conversation_id}", response_model=ConversationSchema)
def get_conversation(
    conversation_id: str,
    user_id: str = Query(min_length=1),
    uc: ConversationOrchestrator = Depends(get_orchestrator),
):
    return _conversation_schema(_owned_or_404(uc, conversation_id, user_id))


@router.delete("/conversations/{conversation_id}", response_model=DeleteResponseSchema)
def delete_conversation(
    conversation_id: str,
    user_id: str = Query(min_length=1),
    uc: ConversationOrchestrator = Depends(get_orchestrator),
):
    _owned_or_404(uc, conversation_id, user_id)
    return DeleteResponseSchema(deleted=uc.delete_conversation(conversation_id))


def _owned_or_404(uc: ConversationOrchestrator, conversation_id: str, user_id: str) -> ConversationState:
    state = uc.get_conversation(conversation_id)
    if state is None or state.user_id != user_id:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return state


def _turn_schema(result: TurnResult) -> TurnResponseSchema:
    if isinstance(result, ClarificationNeeded):
        return TurnResponseSchema(
            kind=TurnKind.clarification_needed,
            conversation_id=result.conversation_id,
            message=result.question,
            field=result.field.value if result.field else None,
            options=[_option_schema(o) for o in result.options],
        )
    if isinstance(result, ConflictDetected):
        return TurnResponseSchema(
            kind=TurnKind.conflict_detected,
            conversation_id=result.conversation_id,
            message=result.message,
            options=[_option_schema(o) for o in result.options],
            conflict=_conflict_schema(result.conflict),
        )
    if isinstance(result, Success):
        return TurnResponseSchema(
            kind=TurnKind.success,
            conversation_id=result.conversation_id,
            message=result.message,
            action=_action_schema(result.action) if result.action else None,
        )
    raise TypeError(f"unsupported turn result {type(result).__name__}")


def _option_schema(option: ClarificationOption) -> OptionSchema:
    return OptionSchema(id=option.id, label=option.label, value=option.value)


def _conflict_schema(conflict: Conflict) -> ConflictSchema:
    return ConflictSchema(
        type=conflict.type.value,
        severity=conflict.severity.value,
        title=conflict.requested_event.title,
        start=conflict.requested_event.start,
        end=conflict.requested_event.end,
        conflicting_events=[
            ConflictEventSchema(
                id=e.id,
                title=e.title,
                start=e.start,
                end=e.end,
                is_flexible=e.is_flexible,
                attendee_count=e.attendee_count,
                source=e.source,
            )
            for e in conflict.conflicting_events
        ],
        alternatives=[
            TimeSlotSchema(start=s.start, end=s.end, score=s.score, reason=s.reason)
            for s in conflict.alternatives
        ],
        message=conflict.message,
        overlap_minutes=conflict.overlap_minutes,
    )


def _action_schema(action: ExecutedAction) -> ExecutedActionSchema:
    return ExecutedActionSchema(
        action_id=action.action_id,
        kind=action.kind.value,
        title=action.title,
        created_at=action.created_at,
        start=action.start,
        end=action.end,
        created_task_id=action.created_task_id,
        created_event_id=action.created_event_id,
        created_intent_id=action.created_intent_id,
        list_id=action.list_id,
    )


def _conversation_schema(state: ConversationState) -> ConversationSchema:
    return ConversationSchema(
        id=state.id,
        user_id=state.user_id,
        status=state.status.value,
        current_step=state.current_step.value,
        extracted_data=ExtractedDataSchema(**extracted_to_payload(state.extracted_data)),
        pending_fields=[f.value for f in state.pending_fields],
        options=[_option_schema(o) for o in state.clarification_options],
        conflict=_conflict_schema(state.conflict_info) if state.conflict_info else None,
        messages=[
            MessageSchema(role=m.role.value, content=m.content, timestamp=m.timestamp, parsed=m.parsed)
            for m in state.messages
        ],
        created_at=state.created_at,
        last_activity_at=state.last_activity_at,
        timeout_at=state.timeout_at,
        completed_at=state.completed_at,
    )
