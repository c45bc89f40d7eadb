from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Настройки приложения и окружения.
    app_name: str = "Swiss Tournament Engine"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    debug: bool = True
    log_level: str = "INFO"
    database_url: str
    database_isolation_level: str | None = None
    secret_key: str = "change_me"
    staff_key: str

    # Очки за матч и условные результаты бая.
    match_win_points: int = 3
    match_loss_points: int = 0
    match_draw_points: int = 1
    bye_game_wins: int = 2
    bye_game_losses: int = 0
    allow_draws: bool = False
    max_game_wins: int = 5

    # Тай-брейки.
    percentage_floor: float = 0.33
    default_percentage: float = 0.5
    buchholz_enabled: bool = True

    # Ограничения регистрации.
    team_name_max_length: int = 100
    notes_max_length: int = 500

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
