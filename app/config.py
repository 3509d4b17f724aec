from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Application Settings
    app_name: str = "FinZo Refinance Assistant"
    app_version: str = "0.1.0"

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"

    # WhatsApp Cloud API
    whatsapp_api_url: str = ""
    whatsapp_access_token: str = ""
    whatsapp_verify_token: str = ""
    admin_chat_id: str = ""
    admin_contact_url: str = "https://wa.me/60126181683"

    # Leads Portal
    portal_api_url: str = "https://qaichatbot.chat/api/leads"
    leads_api_key: str = ""
    lead_submit_attempts: int = 3

    # LLM Configuration
    openai_api_key: str = ""
    openai_model: str = "gpt-4"
    openai_temperature: float = 0.7
    max_tokens: int = 300

    # Database
    database_url: str = "sqlite:///./refinance_bot.db"

    # Outbound HTTP
    http_timeout_seconds: float = 8.0

    # Rate lookup fallback
    default_rate: float = 4.05
    default_lender_name: str = "OCBC Bank"

    # Onboarding policy
    referral_prefix: str = "REF"
    referral_required: bool = False
    default_referral_code: str = "REF00000000"

    # Lead policy
    min_lifetime_savings: float = 10000
    submit_disqualified_leads: bool = False
    background_lead_dispatch: bool = True

    # Validation thresholds
    min_loan_amount: float = 100000
    max_loan_amount: float = 30000000
    path_a_min_tenure: int = 5
    path_a_max_tenure: int = 35
    path_b_min_tenure: int = 10
    path_b_max_tenure: int = 35
    min_interest_rate: float = 3
    max_interest_rate: float = 8
    min_monthly_repayment: float = 500
    max_monthly_repayment: float = 60000

    # Feature Flags
    enable_rate_limiting: bool = True
    max_requests_per_minute: int = 120
    rate_limit_by_ip: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Create a global settings instance
settings = Settings()
