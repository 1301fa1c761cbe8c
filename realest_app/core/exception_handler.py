from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


def validation_payload(errors: list[dict]) -> dict:
    return {
        "success": False,
        "error": "Validation failed",
        "details": errors,
    }


class ValidationErrorHandler:
    async def __call__(self, request: Request, exc: RequestValidationError):

        errors = []

        for err in exc.errors():
            errors.append({
                "loc": err.get("loc"),
                "msg": str(err.get("msg")),
                "type": err.get("type"),
            })

        return JSONResponse(
            status_code=422,
            content=validation_payload(errors),
        )


class FieldValidationError(HTTPException):
    def __init__(self, errors: list[dict]):
        super().__init__(status_code=422, detail=errors)
        self.errors = errors

    @classmethod
    def missing(cls, *fields: str, msg: str = "Field required"):
        return cls(
            [{"loc": ["body", field], "msg": msg, "type": "missing"} for field in fields]
        )

    @classmethod
    def invalid(cls, field: str, msg: str, location: str = "body"):
        return cls([{"loc": [location, field], "msg": msg, "type": "value_error"}])


class FieldValidationErrorHandler:
    async def __call__(self, request: Request, exc: FieldValidationError):
        return JSONResponse(
            status_code=exc.status_code,
            content=validation_payload(exc.errors),
        )
