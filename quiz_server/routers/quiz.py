import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from quiz_server.authentication.session_codec import AuthError
from quiz_server.controller import QuizController
from quiz_server.models.api_models import (
    CheckoutReply,
    CheckoutRequest,
    ErrorCode,
    ErrorReply,
    QuizAnswerReply,
    QuizAnswerRequest,
    QuizQuestionReply,
    StatsReply,
    WheelSpinReply,
)
from quiz_server.models.state_models import UserState

TOKEN_SCHEME = "userstate"

quiz_router = APIRouter()


def get_quiz_controller(request: Request) -> QuizController:
    return request.app.state.quiz_controller


def get_user_state(
    authorization: str | None = Header(default=None),
    quiz_controller: QuizController = Depends(get_quiz_controller),
) -> UserState:
    """Decode the state carried in the Authorization header.

    No header means a new session. Every kind of bad token gets the same 401.
    """
    if authorization is None:
        return quiz_controller.create_user()

    kind, _, value = authorization.partition(" ")
    if kind.lower() != TOKEN_SCHEME or not value:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization token",
            headers={"WWW-Authenticate": TOKEN_SCHEME},
        )

    try:
        return quiz_controller.decode_user(value)
    except AuthError as e:
        logging.debug(f"Rejected token: {type(e).__name__}: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization token",
            headers={"WWW-Authenticate": TOKEN_SCHEME},
        )


def not_found() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorReply(error=ErrorCode.NotFound).model_dump(mode="json"),
    )


@quiz_router.get("/quiz/{quiz_name}", response_model=QuizQuestionReply)
async def get_quiz(
    quiz_name: str,
    user_state: UserState = Depends(get_user_state),
    quiz_controller: QuizController = Depends(get_quiz_controller),
):
    question = quiz_controller.next_question(quiz_name, user_state)
    if question is None:
        return not_found()

    choices = list(question.correct) + list(question.incorrect)
    quiz_controller.rng.shuffle(choices)

    return QuizQuestionReply(
        question=question.question,
        choices=choices,
        token=quiz_controller.encode_user(user_state),
    )


@quiz_router.post("/quiz/{quiz_name}", response_model=QuizAnswerReply)
async def post_quiz(
    quiz_name: str,
    body: QuizAnswerRequest,
    user_state: UserState = Depends(get_user_state),
    quiz_controller: QuizController = Depends(get_quiz_controller),
):
    answer = quiz_controller.answer_question(quiz_name, user_state, body.answer)
    if answer is None:
        return not_found()

    is_correct, question = answer
    return QuizAnswerReply(
        is_correct=is_correct,
        correct=list(question.correct),
        token=quiz_controller.encode_user(user_state),
    )


@quiz_router.post("/wheel/{wheel_name}", response_model=WheelSpinReply)
async def post_wheel(
    wheel_name: str,
    user_state: UserState = Depends(get_user_state),
    quiz_controller: QuizController = Depends(get_quiz_controller),
):
    points = quiz_controller.spin_wheel(wheel_name, user_state)
    if points is None:
        return not_found()

    logging.info(f"User {user_state.id.hex()} spun {wheel_name} for {points} points")
    return WheelSpinReply(points=points, token=quiz_controller.encode_user(user_state))


@quiz_router.get("/stats", response_model=StatsReply)
async def stats(
    user_state: UserState = Depends(get_user_state),
    quiz_controller: QuizController = Depends(get_quiz_controller),
):
    return StatsReply(total_points=quiz_controller.points(user_state))


@quiz_router.post("/checkout", response_model=CheckoutReply)
async def checkout(
    body: CheckoutRequest,
    user_state: UserState = Depends(get_user_state),
    quiz_controller: QuizController = Depends(get_quiz_controller),
):
    if "@" not in body.email or len(body.email) < 3:
        return not_found()

    points = await quiz_controller.register(
        body.codes, body.email, body.consent, user_state
    )
    return CheckoutReply(points=points)
