from pydantic import BaseModel

class RegisterReq(BaseModel):
    username: str
    password: str
    # принимаем от клиента, но никогда не применяем
    role: str | None = None

class UserResp(BaseModel):
    id: int
    username: str
    role: str

class ErrorResp(BaseModel):
    detail: str
