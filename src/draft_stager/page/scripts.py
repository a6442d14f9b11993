"""In-page JavaScript snippets.

Every snippet is a self-contained IIFE that re-queries the DOM from scratch.
Python values are injected as JSON constants at the top of the function body,
so the bodies themselves need no escaping.
"""

from __future__ import annotations

import json
from typing import Any

MODEL_BUTTON_SELECTOR = '[data-testid="model-switcher-dropdown-button"]'
MENU_CONTAINER_SELECTOR = '[role="menu"], [data-radix-collection-root]'
MENU_ITEM_SELECTOR = (
    'button, [role="menuitem"], [role="menuitemradio"], [data-testid*="model-switcher-"]'
)

TEXTAREA_SELECTORS = (
    "#prompt-textarea",
    'textarea[name="prompt-textarea"]',
    'textarea[data-id="prompt-textarea"]',
    'textarea[placeholder*="Send a message"]',
    'textarea[aria-label="Message ChatGPT"]',
    "textarea:not([disabled])",
)

EDITABLE_SELECTORS = (
    '[data-testid*="composer"] [contenteditable="true"]',
    'form [contenteditable="true"]',
    '[contenteditable="true"][role="textbox"]',
)

THINKING_CHIP_SELECTORS = (
    '[data-testid="composer-footer-actions"] button[aria-haspopup="menu"]',
    'button.__composer-pill[aria-haspopup="menu"]',
    '.__composer-pill-composite button[aria-haspopup="menu"]',
)

CLICK_DISPATCHER = """
function dispatchClickSequence(target) {
  if (!target || !(target instanceof EventTarget)) return false;
  for (const type of ['pointerdown', 'mousedown', 'pointerup', 'mouseup', 'click']) {
    const common = { bubbles: true, cancelable: true, view: window };
    const event = type.startsWith('pointer') && 'PointerEvent' in window
      ? new PointerEvent(type, { ...common, pointerId: 1, pointerType: 'mouse' })
      : new MouseEvent(type, common);
    target.dispatchEvent(event);
  }
  return true;
}
"""

COMPOSER_HELPERS = """
const visible = (node) => {
  if (!node || typeof node.getBoundingClientRect !== 'function') return false;
  const rect = node.getBoundingClientRect();
  const style = window.getComputedStyle(node);
  return rect.width > 0 && rect.height > 0 && style.display !== 'none' && style.visibility !== 'hidden';
};
const pickFirst = (nodes) => nodes.find((node) => visible(node)) || nodes[0] || null;
const pickBySelectors = (selectors) =>
  pickFirst(selectors.map((s) => document.querySelector(s)).filter(Boolean));
const findTextarea = () => pickBySelectors(TEXTAREA_SELECTORS);
const findComposerRoot = (textarea) =>
  (textarea && textarea.closest('[data-testid*="composer"], form')) ||
  document.querySelector('[data-testid*="composer"]') ||
  document.querySelector('form');
const findFileInput = (root) => {
  const candidates = [];
  if (root) candidates.push(...root.querySelectorAll('input[type="file"]'));
  candidates.push(...document.querySelectorAll('[data-testid*="composer"] input[type="file"]'));
  candidates.push(...document.querySelectorAll('form input[type="file"]'));
  candidates.push(...document.querySelectorAll('input[type="file"]'));
  return pickFirst(Array.from(new Set(candidates)));
};
"""

MENU_HELPERS = """
const optionIsSelected = (node) => {
  if (!(node instanceof HTMLElement)) return false;
  if (
    node.getAttribute('aria-checked') === 'true' ||
    node.getAttribute('aria-selected') === 'true' ||
    node.getAttribute('aria-current') === 'true' ||
    node.getAttribute('data-selected') === 'true'
  ) {
    return true;
  }
  const state = (node.getAttribute('data-state') ?? '').toLowerCase();
  if (['checked', 'selected', 'on', 'true'].includes(state)) return true;
  return Boolean(node.querySelector(
    '[aria-checked="true"], [data-state="checked"], [data-state="selected"], ' +
    '[data-testid*="check"], [role="img"][data-icon="check"], svg[data-icon="check"]'
  ));
};
const describeItem = (node, index) => ({
  index,
  label: (node.textContent ?? '').trim(),
  testid: node.getAttribute('data-testid') ?? '',
  selected: optionIsSelected(node),
});
const collectMenuItems = () => {
  const items = [];
  const seen = new Set();
  for (const menu of document.querySelectorAll(MENU_CONTAINER_SELECTOR)) {
    for (const node of menu.querySelectorAll(MENU_ITEM_SELECTOR)) {
      if (seen.has(node)) continue;
      seen.add(node);
      items.push(node);
    }
  }
  return items;
};
const normalize = (value) => (value || '')
  .toLowerCase()
  .replace(/[^a-z0-9]+/g, ' ')
  .replace(/\\s+/g, ' ')
  .trim();
const hasWord = (text, word) => text.split(' ').includes(word);
"""


def _iife(body: str, *helpers: str, **constants: Any) -> str:
    """Wrap *body* in an arrow IIFE with JSON constants and helper blocks."""
    decls = "\n".join(f"const {name} = {json.dumps(value)};" for name, value in constants.items())
    return "(() => {\n" + decls + "\n" + "\n".join(helpers) + "\n" + body + "\n})()"


def _composer_constants() -> dict[str, Any]:
    return {
        "TEXTAREA_SELECTORS": list(TEXTAREA_SELECTORS),
        "EDITABLE_SELECTORS": list(EDITABLE_SELECTORS),
    }


def _menu_constants() -> dict[str, Any]:
    return {
        "MENU_CONTAINER_SELECTOR": MENU_CONTAINER_SELECTOR,
        "MENU_ITEM_SELECTOR": MENU_ITEM_SELECTOR,
    }


# -- Composer --------------------------------------------------------------


def readiness_expression() -> str:
    body = """
const textarea = findTextarea();
const fileInput = findFileInput(findComposerRoot(textarea));
return {
  ready: Boolean(textarea && fileInput),
  textareaReady: Boolean(textarea),
  fileInputReady: Boolean(fileInput),
  href: location.href,
};
"""
    return _iife(body, COMPOSER_HELPERS, **_composer_constants())


def file_input_expression() -> str:
    """Evaluates to the composer's file input element (use as a handle)."""
    body = "return findFileInput(findComposerRoot(findTextarea()));"
    return _iife(body, COMPOSER_HELPERS, **_composer_constants())


def attachment_state_expression() -> str:
    body = """
const root = findComposerRoot(findTextarea());
const fileInput = findFileInput(root);
return {
  attached: (fileInput && fileInput.files && fileInput.files.length) || 0,
  composerText: ((root && root.innerText) || '').slice(0, 20000),
};
"""
    return _iife(body, COMPOSER_HELPERS, **_composer_constants())


def set_prompt_expression(text: str) -> str:
    body = """
try {
  const textarea = findTextarea();
  if (textarea && String(textarea.tagName || '').toUpperCase() === 'TEXTAREA') {
    const nativeSetter = Object.getOwnPropertyDescriptor(window.HTMLTextAreaElement.prototype, 'value')?.set;
    if (nativeSetter) {
      nativeSetter.call(textarea, PROMPT);
    } else {
      textarea.value = PROMPT;
    }
    textarea.dispatchEvent(new Event('input', { bubbles: true }));
    textarea.dispatchEvent(new Event('change', { bubbles: true }));
    textarea.focus();
    return { ok: true, mode: 'textarea', length: PROMPT.length };
  }

  const editorCandidates = textarea ? [textarea] : [];
  const editor = pickFirst([
    ...editorCandidates,
    ...EDITABLE_SELECTORS.map((s) => document.querySelector(s)).filter(Boolean),
  ]);
  if (!editor) {
    return { ok: false, reason: 'composer-input-not-found' };
  }
  editor.focus();
  const range = document.createRange();
  range.selectNodeContents(editor);
  const selection = window.getSelection();
  if (selection) {
    selection.removeAllRanges();
    selection.addRange(range);
  }
  if (!document.execCommand('insertText', false, PROMPT)) {
    editor.textContent = PROMPT;
  }
  editor.dispatchEvent(new Event('input', { bubbles: true }));
  editor.dispatchEvent(new Event('change', { bubbles: true }));
  return { ok: true, mode: 'contenteditable', length: PROMPT.length };
} catch (error) {
  return { ok: false, reason: 'exception', message: String((error && error.message) || error || 'unknown') };
}
"""
    return _iife(body, COMPOSER_HELPERS, PROMPT=text, **_composer_constants())


# -- Model menu ------------------------------------------------------------


def model_label_expression() -> str:
    body = """
const button = document.querySelector(MODEL_BUTTON_SELECTOR);
return button ? (button.textContent ?? '').trim() : null;
"""
    return _iife(body, MODEL_BUTTON_SELECTOR=MODEL_BUTTON_SELECTOR)


def model_menu_expression(open_menu: bool) -> str:
    """Read the model button and any open menu entries.

    With *open_menu* set, clicks the button when no menu is open.
    """
    body = """
function collectModelMenu() {
  const button = document.querySelector(MODEL_BUTTON_SELECTOR);
  if (!button) return { buttonFound: false, clickedButton: false, options: [] };
  let clickedButton = false;
  if (OPEN_MENU && !document.querySelector(MENU_CONTAINER_SELECTOR)) {
    clickedButton = dispatchClickSequence(button);
  }
  return {
    buttonFound: true,
    label: (button.textContent ?? '').trim(),
    clickedButton,
    options: collectMenuItems().map(describeItem),
  };
}
return collectModelMenu();
"""
    return _iife(
        body,
        CLICK_DISPATCHER,
        MENU_HELPERS,
        MODEL_BUTTON_SELECTOR=MODEL_BUTTON_SELECTOR,
        OPEN_MENU=open_menu,
        **_menu_constants(),
    )


def click_model_option_expression(index: int, label: str, testid: str) -> str:
    """Click a menu entry found by ``model_menu_expression`` if it is still in place."""
    body = """
function clickModelOption() {
  const node = collectMenuItems()[INDEX];
  if (!node) return { clicked: false };
  const current = describeItem(node, INDEX);
  if (current.label !== LABEL || current.testid !== TESTID) return { clicked: false };
  return { clicked: dispatchClickSequence(node) };
}
return clickModelOption();
"""
    return _iife(
        body,
        CLICK_DISPATCHER,
        MENU_HELPERS,
        INDEX=index,
        LABEL=label,
        TESTID=testid,
        **_menu_constants(),
    )


def menu_diagnostics_expression() -> str:
    body = """
const detectTemporaryChat = () => {
  try {
    const flag = (new URL(window.location.href).searchParams.get('temporary-chat') ?? '').toLowerCase();
    if (flag === 'true' || flag === '1' || flag === 'yes') return true;
  } catch (error) {}
  if ((document.title || '').toLowerCase().includes('temporary chat')) return true;
  return (document.body?.innerText || '').toLowerCase().includes('temporary chat');
};
const roots = Array.from(document.querySelectorAll(MENU_CONTAINER_SELECTOR));
const nodes = roots.length > 0
  ? roots.flatMap((root) => Array.from(root.querySelectorAll(MENU_ITEM_SELECTOR)))
  : Array.from(document.querySelectorAll(MENU_ITEM_SELECTOR));
const labels = nodes
  .map((node) => (node?.textContent ?? '').trim())
  .filter(Boolean)
  .filter((label, index, arr) => arr.indexOf(label) === index);
return { temporaryChat: detectTemporaryChat(), availableOptions: labels.slice(0, 12) };
"""
    return _iife(body, **_menu_constants())


# -- Thinking level menu ---------------------------------------------------


def open_thinking_chip_expression() -> str:
    body = """
function openThinkingChip() {
  for (const selector of CHIP_SELECTORS) {
    for (const btn of document.querySelectorAll(selector)) {
      if (btn.getAttribute?.('aria-haspopup') !== 'menu') continue;
      const aria = normalize(btn.getAttribute?.('aria-label') ?? '');
      const text = normalize(btn.textContent ?? '');
      if (aria.includes('thinking') || text.includes('thinking') || hasWord(aria, 'pro') || hasWord(text, 'pro')) {
        dispatchClickSequence(btn);
        return { found: true, label: (btn.textContent ?? '').trim() };
      }
    }
  }
  return { found: false };
}
return openThinkingChip();
"""
    return _iife(
        body,
        CLICK_DISPATCHER,
        MENU_HELPERS,
        CHIP_SELECTORS=list(THINKING_CHIP_SELECTORS),
        **_menu_constants(),
    )


_THINKING_MENU_FINDER = """
const findThinkingMenu = () => {
  for (const menu of document.querySelectorAll(MENU_CONTAINER_SELECTOR + ', [role="group"]')) {
    const heading = menu.querySelector?.('.__menu-label, [class*="menu-label"]');
    if (normalize(heading?.textContent ?? '').includes('thinking time')) return menu;
    const text = normalize(menu.textContent ?? '');
    if (text.includes('standard') && text.includes('extended')) return menu;
  }
  return null;
};
"""


def thinking_menu_expression() -> str:
    body = """
function collectThinkingMenu() {
  const menu = findThinkingMenu();
  if (!menu) return { menuFound: false, options: [] };
  return {
    menuFound: true,
    options: Array.from(menu.querySelectorAll(MENU_ITEM_SELECTOR)).map(describeItem),
  };
}
return collectThinkingMenu();
"""
    return _iife(body, MENU_HELPERS, _THINKING_MENU_FINDER, **_menu_constants())


def click_thinking_option_expression(index: int, label: str) -> str:
    body = """
function clickThinkingOption() {
  const menu = findThinkingMenu();
  const node = menu ? menu.querySelectorAll(MENU_ITEM_SELECTOR)[INDEX] : null;
  if (!node || (node.textContent ?? '').trim() !== LABEL) return { clicked: false };
  return { clicked: dispatchClickSequence(node) };
}
return clickThinkingOption();
"""
    return _iife(
        body,
        CLICK_DISPATCHER,
        MENU_HELPERS,
        _THINKING_MENU_FINDER,
        INDEX=index,
        LABEL=label,
        **_menu_constants(),
    )


def dismiss_menu_expression() -> str:
    body = """
const target = document.activeElement || document.body;
for (const type of ['keydown', 'keyup']) {
  target.dispatchEvent(new KeyboardEvent(type, { key: 'Escape', code: 'Escape', bubbles: true }));
}
return true;
"""
    return _iife(body)
