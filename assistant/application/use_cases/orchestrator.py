from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from assistant.application.exceptions import (
    ConflictCheckFailed,
    ConversationExpired,
    NLUContractError,
    NLUUpstreamError,
)
from assistant.application.ports.action_executor import ActionExecutorPort
from assistant.application.ports.nlu import NLUContext, NLUPort
from assistant.application.use_cases.conflict_detection import ConflictDetectionEngine
from assistant.application.use_cases.conversation_store import ConversationStore
from assistant.application.utils.action_builder import (
    affects_calendar,
    merge_parsed_action,
    requested_window,
    resolve_action,
    with_start,
)
from assistant.application.utils.clarification import (
    build_clarification,
    outstanding_fields,
    requires_clarification,
)
from assistant.application.utils.messages import (
    CONFLICT_CHECK_FAILED_MESSAGE,
    EMPTY_TURN_MESSAGE,
    EXPIRED_MESSAGE,
    MAX_LISTED_ALTERNATIVES,
    NLU_FAILED_MESSAGE,
    build_cancel_message,
    build_conflict_prompt,
    build_execution_failure_message,
    build_invalid_choice_message,
    build_reschedule_transcript,
    format_when,
    is_cancel,
    is_override,
    parse_option_index,
)
from assistant.domain.entities.conflict import Conflict
from assistant.domain.entities.conversation_state import (
    ConversationState,
    ConversationStatus,
    ConversationStep,
)
from assistant.domain.entities.message import MessageRole
from assistant.domain.entities.parsed_action import ClarificationOption
from assistant.domain.entities.turn_result import ClarificationNeeded, ConflictDetected, Success, TurnResult


class ConversationOrchestrator:
    """
    Runs one conversational turn: parse, merge, then clarify, surface a
    conflict, or execute.

    States: initial -> clarifying -> initial -> resolving_conflict ->
    executing -> completed. Expiry to abandoned is handled by the store.
    """

    def __init__(
        self,
        store: ConversationStore,
        nlu: NLUPort,
        conflicts: ConflictDetectionEngine,
        executor: ActionExecutorPort,
        timezone: ZoneInfo,
        default_duration_minutes: int = 60,
    ) -> None:
        self._store = store
        self._nlu = nlu
        self._conflicts = conflicts
        self._executor = executor
        self._timezone = timezone
        self._default_duration = default_duration_minutes
        self._logger = logging.getLogger(__name__)

    async def start_or_continue(
        self,
        user_id: str,
        transcript: str,
        conversation_id: str | None = None,
    ) -> TurnResult:
        transcript = (transcript or "").strip()
        state = self._owned(conversation_id, user_id) if conversation_id else None

        try:
            if state is None:
                if not transcript:
                    return ClarificationNeeded(conversation_id=None, question=EMPTY_TURN_MESSAGE)
                state = self._store.create(user_id, transcript)
            else:
                state = self._require(self._store.add_message(state.id, MessageRole.user, transcript))

            if state.current_step == ConversationStep.resolving_conflict and state.conflict_info is not None:
                return await self._resolve_conflict_turn(state, transcript)
            return await self._run_turn(state, transcript)
        except ConversationExpired as e:
            self._logger.warning("Turn outlived its conversation", extra={"reason": str(e)})
            return ClarificationNeeded(conversation_id=None, question=EXPIRED_MESSAGE)

    async def resolve_clarification(
        self,
        user_id: str,
        conversation_id: str,
        free_text: str | None = None,
        selected_option_id: str | None = None,
    ) -> TurnResult:
        state = self._owned(conversation_id, user_id)
        text = (free_text or "").strip()

        if selected_option_id and state is not None:
            option = next((o for o in state.clarification_options if o.id == selected_option_id), None)
            if option is None:
                text = text or selected_option_id
            elif state.current_step == ConversationStep.resolving_conflict:
                text = option.id
            else:
                text = option.label
        elif selected_option_id and not text:
            text = selected_option_id

        if not text:
            return ClarificationNeeded(
                conversation_id=state.id if state else None,
                question=EMPTY_TURN_MESSAGE,
            )
        return await self.start_or_continue(user_id, text, state.id if state else None)

    def get_conversation(self, conversation_id: str) -> ConversationState | None:
        return self._store.get(conversation_id)

    def list_conversations(self, user_id: str) -> list[ConversationState]:
        return self._store.list_for_user(user_id)

    def delete_conversation(self, conversation_id: str) -> bool:
        return self._store.abandon(conversation_id)

    def stats(self) -> dict[str, int]:
        return self._store.stats()

    async def _run_turn(self, state: ConversationState, transcript: str) -> TurnResult:
        context = NLUContext(extracted_data=state.extracted_data, pending_fields=state.pending_fields)
        try:
            parsed = await self._nlu.parse(transcript, context)
        except (NLUUpstreamError, NLUContractError) as e:
            self._logger.warning("NLU parse failed", extra={"conversation_id": state.id, "reason": str(e)})
            self._require(self._store.add_message(state.id, MessageRole.assistant, NLU_FAILED_MESSAGE))
            self._require(self._store.update(state.id, status=ConversationStatus.waiting_for_user))
            return ClarificationNeeded(conversation_id=state.id, question=NLU_FAILED_MESSAGE)

        # the conversation may have died while the parse was in flight
        state = self._require(self._store.get(state.id))
        merged = merge_parsed_action(state.extracted_data, parsed)

        if requires_clarification(parsed, merged):
            prompt = build_clarification(parsed, merged)
            self._require(
                self._store.update(
                    state.id,
                    extracted_data=merged,
                    pending_fields=outstanding_fields(parsed, merged),
                    clarification_options=prompt.options,
                    current_step=ConversationStep.clarifying,
                    status=ConversationStatus.waiting_for_user,
                )
            )
            self._require(
                self._store.add_message(
                    state.id,
                    MessageRole.assistant,
                    prompt.question,
                    parsed={"field": prompt.field.value} if prompt.field else None,
                )
            )
            self._logger.info(
                "Clarification requested",
                extra={"conversation_id": state.id, "step": ConversationStep.clarifying.value},
            )
            return ClarificationNeeded(
                conversation_id=state.id,
                question=prompt.question,
                options=prompt.options,
                field=prompt.field,
            )

        state = self._require(
            self._store.update(
                state.id,
                extracted_data=merged,
                pending_fields=(),
                clarification_options=(),
                current_step=ConversationStep.initial,
                status=ConversationStatus.active,
            )
        )
        return await self._check_and_execute(state)

    async def _check_and_execute(self, state: ConversationState, override: bool = False) -> TurnResult:
        data = state.extracted_data
        if affects_calendar(data) and not override:
            start, end = requested_window(data, self._timezone, self._default_duration)
            try:
                conflict = await self._conflicts.check_conflicts(state.user_id, start, end, title=data.title)
            except ConflictCheckFailed as e:
                self._logger.warning("Conflict check failed", extra={"conversation_id": state.id, "reason": str(e)})
                self._require(self._store.add_message(state.id, MessageRole.assistant, CONFLICT_CHECK_FAILED_MESSAGE))
                self._require(
                    self._store.update(
                        state.id,
                        current_step=ConversationStep.initial,
                        status=ConversationStatus.active,
                    )
                )
                return ClarificationNeeded(conversation_id=state.id, question=CONFLICT_CHECK_FAILED_MESSAGE)

            if conflict is not None:
                return self._surface_conflict(state, conflict)

        return await self._execute(state)

    def _surface_conflict(self, state: ConversationState, conflict: Conflict) -> ConflictDetected:
        text = build_conflict_prompt(conflict, self._timezone)
        options = tuple(
            ClarificationOption(
                id=str(index),
                label=format_when(slot.start.astimezone(self._timezone)),
                value=slot.start.isoformat(),
            )
            for index, slot in enumerate(conflict.alternatives[:MAX_LISTED_ALTERNATIVES], start=1)
        )
        self._require(
            self._store.update(
                state.id,
                conflict_info=conflict,
                clarification_options=options,
                current_step=ConversationStep.resolving_conflict,
                status=ConversationStatus.waiting_for_user,
            )
        )
        self._require(
            self._store.add_message(
                state.id,
                MessageRole.assistant,
                text,
                parsed={"conflict_type": conflict.type.value, "severity": conflict.severity.value},
            )
        )
        self._logger.info(
            "Conflict surfaced",
            extra={"conversation_id": state.id, "step": ConversationStep.resolving_conflict.value},
        )
        return ConflictDetected(conversation_id=state.id, conflict=conflict, message=text, options=options)

    async def _execute(self, state: ConversationState) -> TurnResult:
        action = resolve_action(state.extracted_data, self._timezone, self._default_duration)
        try:
            executed = await self._executor.execute(state.user_id, action)
        except Exception as e:
            self._logger.error(
                "Action execution failed",
                extra={"conversation_id": state.id, "user_id": state.user_id, "reason": str(e)},
            )
            text = build_execution_failure_message(str(e))
            self._require(self._store.add_message(state.id, MessageRole.assistant, text))
            self._require(
                self._store.update(
                    state.id,
                    conflict_info=None,
                    current_step=ConversationStep.initial,
                    status=ConversationStatus.active,
                )
            )
            return ClarificationNeeded(conversation_id=state.id, question=text)

        completed = self._require(self._store.complete(state.id, executed))
        return Success(conversation_id=state.id, message=completed.messages[-1].content, action=executed)

    async def _resolve_conflict_turn(self, state: ConversationState, transcript: str) -> TurnResult:
        conflict = state.conflict_info
        listed = conflict.alternatives[:MAX_LISTED_ALTERNATIVES]
        title = state.extracted_data.title

        if is_cancel(transcript):
            completed = self._require(self._store.complete(state.id, message=build_cancel_message(title)))
            return Success(conversation_id=state.id, message=completed.messages[-1].content)

        index = parse_option_index(transcript)
        if index is not None:
            if not 1 <= index <= len(listed):
                return self._invalid_choice(state, len(listed))
            slot = listed[index - 1]
            self._require(
                self._store.add_message(
                    state.id,
                    MessageRole.system,
                    build_reschedule_transcript(title, slot.start, self._timezone),
                    parsed={"selected_option": index, "start": slot.start.isoformat()},
                )
            )
            state = self._require(
                self._store.update(
                    state.id,
                    extracted_data=with_start(state.extracted_data, slot.start, self._timezone),
                    conflict_info=None,
                    clarification_options=(),
                    current_step=ConversationStep.executing,
                    status=ConversationStatus.active,
                )
            )
            self._logger.info(
                "Alternative selected",
                extra={"conversation_id": state.id, "reason": f"option={index}"},
            )
            return await self._check_and_execute(state)

        if is_override(transcript):
            state = self._require(
                self._store.update(
                    state.id,
                    conflict_info=None,
                    clarification_options=(),
                    current_step=ConversationStep.executing,
                    status=ConversationStatus.active,
                )
            )
            return await self._check_and_execute(state, override=True)

        return self._invalid_choice(state, len(listed))

    def _invalid_choice(self, state: ConversationState, option_count: int) -> ClarificationNeeded:
        text = build_invalid_choice_message(option_count)
        self._require(self._store.add_message(state.id, MessageRole.assistant, text))
        return ClarificationNeeded(
            conversation_id=state.id,
            question=text,
            options=state.clarification_options,
        )

    def _owned(self, conversation_id: str | None, user_id: str) -> ConversationState | None:
        if not conversation_id:
            return None
        state = self._store.get(conversation_id)
        if state is not None and state.user_id != user_id:
            self._logger.warning(
                "Conversation belongs to another user",
                extra={"conversation_id": conversation_id, "user_id": user_id},
            )
            return None
        if state is not None and state.status == ConversationStatus.completed:
            # finished conversations only linger for lookup; new turns start over
            self._logger.info(
                "Conversation already completed, starting a new one",
                extra={"conversation_id": conversation_id, "user_id": user_id},
            )
            return None
        return state

    def _require(self, state: ConversationState | None) -> ConversationState:
        if state is None:
            raise ConversationExpired("conversation no longer live")
        return state
