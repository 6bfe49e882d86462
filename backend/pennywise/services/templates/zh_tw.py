"""Traditional-Chinese notification templates (TWD, 年/月/日 dates)."""
from datetime import date

from pennywise.services.templates.common import build_notification, format_amount, resolve_url, round_percent
from pennywise.services.templates.types import (
    BudgetAlertInput,
    DueReminderInput,
    NotificationContent,
    NotificationTemplates,
    UtilizationAlertInput,
)


def format_currency(amount: float) -> str:
    return format_amount(amount, "$")


def format_date(value: date) -> str:
    return f"{value.year}年{value.month}月{value.day}日"


def _due_summary(data: DueReminderInput, amount: str, due_date: str) -> str:
    if data.days_to_due < 0:
        return f"{data.card_label} 已於 {due_date} 到期，尚有未繳金額 {amount}。"
    if data.days_to_due == 0:
        return f"今日（{due_date}）為 {data.card_label} 繳款日，請記得繳納 {amount}。"
    if data.days_to_due == 1:
        return f"明日（{due_date}）為 {data.card_label} 繳款日，應繳金額 {amount}。"
    return f"{data.card_label} 還有 {data.days_to_due} 天到繳款日（{due_date}），應繳金額 {amount}。"


def due_reminder(data: DueReminderInput) -> NotificationContent:
    amount = format_currency(data.amount)
    due_date = format_date(data.due_date)
    return build_notification(
        subject="信用卡繳款提醒",
        summary=_due_summary(data, amount, due_date),
        url=resolve_url(data.base_url, "/cards"),
        facts=[f"卡片：{data.card_label}", f"繳款日：{due_date}", f"待繳金額：{amount}"],
        cta_text="查看卡片明細",
        base_url=data.base_url,
    )


def utilization_alert(data: UtilizationAlertInput) -> NotificationContent:
    percent = round_percent(data.utilization * 100)
    limit = format_currency(data.limit)
    amount = format_currency(data.amount)
    subject = "信用卡額度過高警示" if data.threshold >= 95 else "信用卡額度提醒"
    return build_notification(
        subject=subject,
        summary=f"{data.card_label} 已使用 {percent}% 額度（目前餘額 {amount}／總額度 {limit}）。",
        url=resolve_url(data.base_url, "/cards"),
        facts=[f"卡片：{data.card_label}", f"目前餘額：{amount}", f"總額度：{limit}"],
        cta_text="前往卡片總覽",
        base_url=data.base_url,
    )


def budget_alert(data: BudgetAlertInput) -> NotificationContent:
    spent = format_currency(data.spent)
    limit = format_currency(data.limit)
    if data.percentage >= 1:
        subject = "預算已超出"
        summary = f"{data.budget_label} 已超出預算（累計 {spent}／預算 {limit}）。"
    else:
        percent = round_percent(data.percentage * 100)
        subject = f"預算已達 {max(percent, round_percent(data.threshold))}%"
        summary = f"{data.budget_label} 已使用預算 {percent}%（累計 {spent}／預算 {limit}）。"
    return build_notification(
        subject=subject,
        summary=summary,
        url=resolve_url(data.base_url, "/budgets"),
        facts=[f"預算：{data.budget_label}", f"已使用：{spent}", f"預算上限：{limit}"],
        cta_text="檢視預算詳情",
        base_url=data.base_url,
    )


templates = NotificationTemplates(
    due_reminder=due_reminder,
    utilization_alert=utilization_alert,
    budget_alert=budget_alert,
)
