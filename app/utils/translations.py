"""Localized chat copy and message rendering"""

from app.models.refinance import Language, SavingsResult

MESSAGES = {
    "GREETING": {
        "en": "Welcome to FinZo AI! 👋",
        "ms": "Selamat datang ke FinZo AI! 👋",
        "zh": "欢迎使用 FinZo AI！👋",
    },
    "WELCOME": {
        "en": "Discover how much you could potentially save on your housing loan.\n1️⃣ *English*\n2️⃣ *Bahasa Malaysia*\n3️⃣ *Chinese*",
        "ms": "Ketahui berapa banyak anda boleh jimatkan daripada pinjaman perumahan anda.\n1️⃣ *Inggeris*\n2️⃣ *Bahasa Malaysia*\n3️⃣ *Cina*",
        "zh": "想知道您在贷款上可节省多少吗？\n1️⃣ *英语*\n2️⃣ *马来语*\n3️⃣ *中文*",
    },
    "ASK_REFERRAL": {
        "en": "*Do you have a referral code?*\nPlease send it now, or reply *0* to continue without one.",
        "ms": "*Adakah anda mempunyai kod rujukan?*\nSila hantar sekarang, atau balas *0* untuk teruskan tanpa kod.",
        "zh": "*您有推荐码吗？*\n请现在发送，或回复 *0* 跳过。",
    },
    "INVALID_INPUT": {
        "en": "*Invalid input.* Please try again.",
        "ms": "*Input tidak sah.* Sila cuba lagi.",
        "zh": "*输入无效。* 请再试一次。",
    },
    "ASK_NAME": {
        "en": "*What's your name?*\n_Example: John Doe_",
        "ms": "*Siapa nama anda?*\n_Contoh: John Doe_",
        "zh": "*你的名字是什么？*\n_例如：John Doe_",
    },
    "ASK_LOAN_DETAILS": {
        "en": "*Do you know your outstanding loan details?*\n1️⃣ *Yes*\n2️⃣ *No*\n_This includes information like loan amount, tenure, and monthly repayment._",
        "ms": "*Adakah anda tahu butiran pinjaman tertunggak anda?*\n1️⃣ *Ya*\n2️⃣ *Tidak*\n_Ini termasuk maklumat seperti jumlah pinjaman, tempoh, dan bayaran balik bulanan._",
        "zh": "*您知道您的未偿贷款详细信息吗？*\n1️⃣ *是*\n2️⃣ *否*\n_这包括贷款金额、期限和每月还款等信息。_",
    },
    "PATH_A_AMOUNT": {
        "en": "*What is your outstanding loan amount?*\n_Example: 300000 for RM300,000_",
        "ms": "*Apakah jumlah pinjaman tertunggak anda?*\n_Contoh: 300000 untuk RM300,000_",
        "zh": "*您的未偿还贷款金额是多少？*\n_例如：300000 表示 RM300,000_",
    },
    "PATH_A_TENURE": {
        "en": "*What is your remaining loan tenure in years?*\n_Example: 20 for 20 years_",
        "ms": "*Apakah baki tempoh pinjaman anda dalam tahun?*\n_Contoh: 20 untuk 20 tahun_",
        "zh": "*您的剩余贷款期限是多少年？*\n_例如：20 表示 20 年_",
    },
    "PATH_A_RATE": {
        "en": "*What is your current interest rate?*\n_Example: 4.5 for 4.5%_",
        "ms": "*Apakah kadar faedah semasa anda?*\n_Contoh: 4.5 untuk 4.5%_",
        "zh": "*您当前的利率是多少？*\n_例如：4.5 表示 4.5%_",
    },
    "PATH_B_AMOUNT": {
        "en": "*What was your original loan amount?*\n_Example: 450000 for RM450,000_",
        "ms": "*Apakah jumlah pinjaman asal anda?*\n_Contoh: 450000 untuk RM450,000_",
        "zh": "*您的原始贷款金额是多少？*\n_例如：450000 表示 RM450,000_",
    },
    "PATH_B_TENURE": {
        "en": "*What was your original loan tenure in years?*\n_Example: 25 for 25 years_",
        "ms": "*Apakah tempoh pinjaman asal anda dalam tahun?*\n_Contoh: 25 untuk 25 tahun_",
        "zh": "*您的原始贷款期限是多少年？*\n_例如：25 表示 25 年_",
    },
    "PATH_B_PAYMENT": {
        "en": "*What is your current monthly repayment?*\n_Example: 2200 for RM2,200_",
        "ms": "*Apakah bayaran balik bulanan anda sekarang?*\n_Contoh: 2200 untuk RM2,200_",
        "zh": "*您当前的每月还款额是多少？*\n_例如：2200 表示 RM2,200_",
    },
    "PATH_B_YEARS_PAID": {
        "en": "*How many years have you been paying this loan?*\n_Example: 5 for 5 years_",
        "ms": "*Anda telah membayar pinjaman ini selama berapa tahun?*\n_Contoh: 5 untuk 5 tahun_",
        "zh": "*您已经支付了多少年的贷款？*\n_例如：5 表示 5 年_",
    },
    "ALREADY_OPTIMAL": {
        "en": "Your current loan terms are already optimal. Refinancing might not be beneficial at this time.",
        "ms": "Terma pinjaman semasa anda sudah optimum. Pembiayaan semula mungkin tidak bermanfaat pada masa ini.",
        "zh": "您当前的贷款条件已经是最优的。目前再融资可能没有好处。",
    },
    "BELOW_THRESHOLD": {
        "en": "The savings from refinancing are below {threshold}. It might not be worth refinancing at this time.",
        "ms": "Penjimatan daripada pembiayaan semula adalah di bawah {threshold}. Ia mungkin tidak berbaloi pada masa ini.",
        "zh": "再融资的节省低于 {threshold}。目前可能不值得再融资。",
    },
    "CONTACT_SUPPORT": {
        "en": "We could not estimate your refinancing savings from the details provided. Please contact support: {contact}",
        "ms": "Kami tidak dapat menganggarkan penjimatan anda daripada butiran yang diberikan. Sila hubungi sokongan: {contact}",
        "zh": "我们无法根据您提供的信息估算节省金额。请联系客服：{contact}",
    },
    "THANK_YOU": {
        "en": 'Thank you for using our service! If you have any questions, please contact our admin at {contact}. If you would like to restart the process, kindly type "restart".',
        "ms": 'Terima kasih kerana menggunakan perkhidmatan kami! Jika ada sebarang soalan, sila hubungi pentadbir kami di {contact}. Untuk bermula semula, sila taip "restart".',
        "zh": '感谢您使用我们的服务！如有任何问题，请联系管理员：{contact}。如需重新开始，请输入 "restart"。',
    },
    "SOMETHING_WENT_WRONG": {
        "en": 'Something went wrong. Please type "restart" to start again.',
        "ms": 'Sesuatu tidak kena. Sila taip "restart" untuk bermula semula.',
        "zh": '出现了问题。请输入 "restart" 重新开始。',
    },
}

ERROR_MESSAGES = {
    "invalidLoanAmount": {
        "en": "Please enter a loan amount between {min} and {max}.",
        "ms": "Sila masukkan jumlah pinjaman antara {min} dan {max}.",
        "zh": "请输入 {min} 至 {max} 之间的贷款金额。",
    },
    "invalidTenure": {
        "en": "Please enter a whole number of years between {min} and {max}.",
        "ms": "Sila masukkan bilangan tahun (nombor bulat) antara {min} dan {max}.",
        "zh": "请输入 {min} 至 {max} 之间的整数年数。",
    },
    "invalidInterestRate": {
        "en": "Please enter an interest rate between {min}% and {max}%.",
        "ms": "Sila masukkan kadar faedah antara {min}% dan {max}%.",
        "zh": "请输入 {min}% 至 {max}% 之间的利率。",
    },
    "invalidRepayment": {
        "en": "Please enter a monthly repayment between {min} and {max}.",
        "ms": "Sila masukkan bayaran bulanan antara {min} dan {max}.",
        "zh": "请输入 {min} 至 {max} 之间的每月还款额。",
    },
    "invalidYearsPaid": {
        "en": "Years paid must be a whole number from 0 and less than your original tenure.",
        "ms": "Tahun dibayar mestilah nombor bulat dari 0 dan kurang daripada tempoh asal anda.",
        "zh": "已还款年数必须是从 0 开始且小于原始贷款期限的整数。",
    },
}

SUMMARY_TRANSLATIONS = {
    "en": {
        "header": "Here is your refinancing summary:",
        "monthlySavings": "Monthly Savings",
        "yearlySavings": "Yearly Savings",
        "totalSavings": "Total Savings",
        "newRepayment": "New Monthly Repayment",
        "bank": "Bank",
        "interestRate": "Interest Rate",
        "analysis": "Please hold on while we analyze if refinancing benefits you.",
    },
    "ms": {
        "header": "Berikut adalah ringkasan pembiayaan semula anda:",
        "monthlySavings": "Penjimatan Bulanan",
        "yearlySavings": "Penjimatan Tahunan",
        "totalSavings": "Jumlah Penjimatan",
        "newRepayment": "Bayaran Bulanan Baru",
        "bank": "Bank",
        "interestRate": "Kadar Faedah",
        "analysis": "Sila tunggu sementara kami menganalisis sama ada pembiayaan semula memberi manfaat kepada anda.",
    },
    "zh": {
        "header": "以下是您的再融资摘要：",
        "monthlySavings": "每月节省",
        "yearlySavings": "每年节省",
        "totalSavings": "总节省",
        "newRepayment": "新的每月还款",
        "bank": "银行",
        "interestRate": "利率",
        "analysis": "请稍等，我们正在分析再融资是否对您有益。",
    },
}

FALLBACK_PERSUASION = {
    "en": "Refinancing could save you significant amounts over time. Contact us to learn more about optimizing your finances.",
    "ms": "Pembiayaan semula boleh menjimatkan jumlah yang besar sepanjang tempoh pinjaman anda. Hubungi kami untuk maklumat lanjut.",
    "zh": "再融资可以帮助您在贷款期限内节省大量资金。联系我们了解更多信息。",
}


def _code(language: Language | str) -> str:
    return language.value if isinstance(language, Language) else str(language)


def translate(key: str, language: Language | str = Language.ENGLISH, **params) -> str:
    """Look up a chat message, falling back to English."""
    variants = MESSAGES[key]
    text = variants.get(_code(language), variants["en"])
    return text.format(**params) if params else text


def error_message(
    key: str, language: Language | str = Language.ENGLISH, **params
) -> str:
    variants = ERROR_MESSAGES[key]
    text = variants.get(_code(language), variants["en"])
    return text.format(**params) if params else text


def fallback_persuasion(language: Language | str) -> str:
    return FALLBACK_PERSUASION.get(_code(language), FALLBACK_PERSUASION["en"])


def format_currency(value: float | None) -> str:
    """Format a ringgit amount, e.g. RM1,234.50"""
    amount = value if value is not None else 0
    if amount < 0:
        return f"-RM{abs(amount):,.2f}"
    return f"RM{amount:,.2f}"


def render_summary(result: SavingsResult, language: Language | str) -> str:
    labels = SUMMARY_TRANSLATIONS.get(_code(language), SUMMARY_TRANSLATIONS["en"])
    lines = [
        labels["header"],
        f"- {labels['monthlySavings']}: {format_currency(result.monthly_savings)}",
        f"- {labels['yearlySavings']}: {format_currency(result.yearly_savings)}",
        f"- {labels['totalSavings']}: {format_currency(result.lifetime_savings)}",
        f"- {labels['newRepayment']}: {format_currency(result.new_monthly_repayment)}",
        f"- {labels['bank']}: {result.lender_name} "
        f"({labels['interestRate']}: {result.new_interest_rate:.2f}%)",
        "",
        labels["analysis"],
    ]
    return "\n".join(lines)


def not_beneficial_message(
    result: SavingsResult, language: Language | str, threshold: float
) -> str:
    if result.lifetime_savings > 0:
        return translate(
            "BELOW_THRESHOLD", language, threshold=format_currency(threshold)
        )
    return translate("ALREADY_OPTIMAL", language)


def render_admin_alert(lead) -> str:
    """Lead summary sent to the admin chat."""
    current_rate = (
        f"{lead.current_interest_rate:.2f}%"
        if lead.current_interest_rate is not None
        else "Not provided"
    )
    lines = [
        "🚨 *New Lead Alert* 🚨",
        "",
        "📋 *Customer Details*:",
        f"- *Name*: {lead.name or 'Not provided'}",
        f"- *Contact Number*: {lead.phone or 'Not provided'}",
        f"- *Referral Code*: {lead.referrer_code or 'N/A'}",
        "",
        "💰 *Loan Information*:",
        f"- *Loan Size*: {format_currency(lead.loan_amount)}",
        f"- *Current Interest Rate*: {current_rate}",
        f"- *Current Monthly Repayment*: {format_currency(lead.current_repayment)}",
        f"- *New Monthly Repayment*: {format_currency(lead.new_monthly_repayment)}",
        f"- *Lender*: {lead.lender_name}",
        "",
        "📈 *Savings Analysis*:",
        f"- *Monthly Savings*: {format_currency(lead.monthly_savings)}",
        f"- *Yearly Savings*: {format_currency(lead.yearly_savings)}",
        f"- *Lifetime Savings*: {format_currency(lead.estimated_savings)}",
        "",
        f"🌐 *Language Preference*: {lead.language.value}",
    ]
    return "\n".join(lines)
